"""Simulation runner for charging sessions.

Ticks the loadpoint planner through a scenario with a manually advanced
clock, charging at full power whenever the plan is active.
"""

from datetime import timedelta
from typing import Optional

import pandas as pd

from evplan_engine.core.baseline import compute_baseline_plan
from evplan_engine.core.clock import Clock, FixedClock
from evplan_engine.core.constants import (
    COL_ACTIVE,
    COL_ENERGY_KWH,
    COL_POWER_W,
    COL_PRICE,
    COL_PROJECTED_START,
    COL_REASON,
    COL_REMAINING_ENERGY_KWH,
    COL_REQUIRED_MINUTES,
    COL_RESTART_IMMINENT,
    COL_SOC,
    COL_TIMESTAMP,
)
from evplan_engine.core.metrics import compute_plan_metrics, compute_simulation_metrics
from evplan_engine.core.schemas import (
    ChargeRequest,
    EnergyGoal,
    LoadpointConfig,
    RateInterval,
    ScenarioConfig,
)
from evplan_engine.core.validate import validate_plan, validate_rate_table
from evplan_engine.forecast.providers import StaticRateProvider
from evplan_engine.io.bundle import load_bundle, write_results
from evplan_engine.io.formats import rates_from_frame
from evplan_engine.io.publish import LoggingPublisher, Publisher
from evplan_engine.model.loadpoint import LoadpointPlanner
from evplan_engine.model.plan import Plan, PlanningError, find_active_slot
from evplan_engine.model.planner import Planner
from evplan_engine.model.soc import CapacitySocModel


def build_loadpoint(
    loadpoint_config: LoadpointConfig,
    rates: list[RateInterval],
    clock: Clock,
    unit: str = "EUR/kWh",
    publisher: Optional[Publisher] = None,
) -> LoadpointPlanner:
    """Wire a loadpoint planner to a static rate table.

    Args:
        loadpoint_config: Loadpoint configuration
        rates: Rate table
        clock: Time source
        unit: Price unit of the rate table
        publisher: Observability sink

    Returns:
        Ready to tick LoadpointPlanner
    """
    provider = StaticRateProvider(rates, unit=unit)
    planner = Planner(provider, clock)
    soc_model = CapacitySocModel(loadpoint_config.capacity_kwh)

    return LoadpointPlanner(loadpoint_config, planner, soc_model, clock, publisher)


def _request(
    loadpoint_config: LoadpointConfig,
    scenario: ScenarioConfig,
    soc: float,
    remaining_energy_kwh: float,
) -> ChargeRequest:
    goal = scenario.goal
    if isinstance(goal, EnergyGoal):
        goal = EnergyGoal(energy_kwh=remaining_energy_kwh)

    return ChargeRequest(
        goal=goal,
        target_time=scenario.target_time,
        current_soc=soc,
        max_power_w=loadpoint_config.max_power_w,
    )


def run_plan(bundle_path: str) -> tuple[Plan, dict]:
    """Plan a bundle's scenario as seen at its start time.

    Args:
        bundle_path: Path to scenario bundle

    Returns:
        Tuple of (plan, metrics comparing the plan to charging immediately)

    Raises:
        PlanningError: If no plan can be made
    """
    loadpoint_config, scenario, rate_table = load_bundle(bundle_path)
    validate_rate_table(rate_table)

    rates = rates_from_frame(rate_table)
    clock = FixedClock(scenario.start)
    loadpoint = build_loadpoint(loadpoint_config, rates, clock, unit=scenario.price_unit)

    remaining_energy = (
        scenario.goal.energy_kwh if isinstance(scenario.goal, EnergyGoal) else 0.0
    )
    request = _request(loadpoint_config, scenario, scenario.initial_soc, remaining_energy)
    required_duration, plan = loadpoint.get_plan(request)

    if scenario.target_time is not None and required_duration > timedelta():
        validate_plan(plan, scenario.target_time, required_duration)
        baseline = compute_baseline_plan(rates, required_duration, scenario.target_time, clock.now())
    else:
        baseline = Plan()

    metrics = compute_plan_metrics(plan, baseline, loadpoint_config.max_power_w)
    metrics["required_hours"] = required_duration.total_seconds() / 3600
    metrics["price_unit"] = loadpoint.planner_unit()

    return plan, metrics


def run_simulation(bundle_path: str) -> tuple[pd.DataFrame, dict]:
    """Run a tick-by-tick charging simulation on a bundle.

    Args:
        bundle_path: Path to scenario bundle

    Returns:
        Tuple of (decisions_df, metrics)
    """
    print(f"Loading bundle from {bundle_path}...")
    loadpoint_config, scenario, rate_table = load_bundle(bundle_path)

    validate_rate_table(rate_table)
    rates = rates_from_frame(rate_table)

    print(f"Loadpoint: {loadpoint_config.loadpoint_id}")
    print(f"Run: {scenario.run_id}")
    print(f"Rates: {len(rates)} intervals, scenario {scenario.start} to {scenario.end}")

    clock = FixedClock(scenario.start)
    publisher = LoggingPublisher(loadpoint_config.loadpoint_id)
    loadpoint = build_loadpoint(loadpoint_config, rates, clock, unit=scenario.price_unit, publisher=publisher)
    soc_model = loadpoint.soc_model

    tick = timedelta(minutes=scenario.tick_minutes)
    tick_hours = scenario.tick_minutes / 60.0

    soc = scenario.initial_soc
    if isinstance(scenario.goal, EnergyGoal):
        remaining_energy = scenario.goal.energy_kwh
    else:
        remaining_energy = soc_model.remaining_charge_energy(soc, scenario.goal.effective_target)

    # Plan as seen at the start, for reference
    plan_frame = None
    try:
        _, initial_plan = loadpoint.get_plan(_request(loadpoint_config, scenario, soc, remaining_energy))
        plan_frame = initial_plan.to_frame()
        print(f"Initial plan: {len(initial_plan)} slots, avg cost {initial_plan.average_cost:.3f}")
    except PlanningError as e:
        print(f"No initial plan: {e}")

    print("Simulating...")
    rows = []
    while clock.now() < scenario.end:
        now = clock.now()
        decision = loadpoint.planner_active(_request(loadpoint_config, scenario, soc, remaining_energy))

        slot = find_active_slot(rates, now)
        price = slot.price if slot is not None else float("nan")

        power_w = loadpoint_config.max_power_w if decision.active else 0.0
        energy_kwh = power_w / 1e3 * tick_hours
        stored_kwh = energy_kwh * loadpoint_config.charge_efficiency

        soc = min(100.0, soc + stored_kwh / loadpoint_config.capacity_kwh * 100)
        if isinstance(scenario.goal, EnergyGoal):
            remaining_energy = max(0.0, remaining_energy - stored_kwh)
        else:
            remaining_energy = soc_model.remaining_charge_energy(soc, scenario.goal.effective_target)

        rows.append(
            {
                COL_TIMESTAMP: now,
                COL_ACTIVE: decision.active,
                COL_RESTART_IMMINENT: decision.restart_imminent,
                COL_REASON: decision.reason.value,
                COL_PROJECTED_START: decision.projected_start,
                COL_REQUIRED_MINUTES: decision.required_duration.total_seconds() / 60,
                COL_PRICE: price,
                COL_POWER_W: power_w,
                COL_ENERGY_KWH: energy_kwh,
                COL_SOC: soc,
                COL_REMAINING_ENERGY_KWH: remaining_energy,
            }
        )

        clock.advance(tick)

    decisions = pd.DataFrame(rows).set_index(COL_TIMESTAMP)
    decisions[COL_PROJECTED_START] = pd.to_datetime(decisions[COL_PROJECTED_START], utc=True)

    print("Computing metrics...")
    metrics = compute_simulation_metrics(decisions, scenario, loadpoint_config)

    print(f"\n✓ Simulation completed")
    print(f"Charged: {metrics['energy_charged_kwh']:.2f} kWh at {metrics['average_price']:.3f} {scenario.price_unit}")
    print(f"Activations: {metrics['activations']}, goal met: {metrics['goal_met']}")

    print(f"\nWriting results to {bundle_path}...")
    write_results(bundle_path, decisions, plan_frame, metrics)

    return decisions, metrics
