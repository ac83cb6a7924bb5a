"""Metrics computation for charging plans and simulation results."""

import pandas as pd

from evplan_engine.core.constants import (
    COL_ACTIVE,
    COL_ENERGY_KWH,
    COL_PRICE,
    COL_REASON,
    COL_REMAINING_ENERGY_KWH,
    COL_SOC,
    NUMERICAL_TOLERANCE,
)
from evplan_engine.core.schemas import DecisionReason, EnergyGoal, LoadpointConfig, ScenarioConfig
from evplan_engine.model.plan import Plan


def compute_plan_cost(plan: Plan, power_w: float) -> float:
    """Compute the cost of charging at constant power through a plan.

    Args:
        plan: Charging plan
        power_w: Charging power in W

    Returns:
        Total cost in the rate provider's currency
    """
    power_kw = power_w / 1e3
    return sum(slot.price * power_kw * slot.duration.total_seconds() / 3600 for slot in plan)


def compute_plan_metrics(plan: Plan, baseline: Plan, power_w: float) -> dict:
    """Compute metrics comparing a planned vs charge-immediately schedule.

    Args:
        plan: Optimized plan
        baseline: Charge-immediately plan
        power_w: Charging power in W

    Returns:
        Dictionary of metrics
    """
    plan_cost = compute_plan_cost(plan, power_w)
    baseline_cost = compute_plan_cost(baseline, power_w)

    savings = baseline_cost - plan_cost
    savings_pct = (savings / baseline_cost * 100) if baseline_cost != 0 else 0.0

    return {
        "plan_cost": plan_cost,
        "baseline_cost": baseline_cost,
        "savings": savings,
        "savings_pct": savings_pct,
        "plan_average_price": plan.average_cost,
        "baseline_average_price": baseline.average_cost,
        "plan_hours": plan.duration.total_seconds() / 3600,
        "plan_start": plan.start,
        "plan_end": plan.end,
        "energy_kwh": power_w / 1e3 * plan.duration.total_seconds() / 3600,
    }


def compute_simulation_metrics(
    decisions: pd.DataFrame,
    scenario: ScenarioConfig,
    loadpoint: LoadpointConfig,
) -> dict:
    """Compute metrics for a simulated charging session.

    Args:
        decisions: One row per tick, as produced by the simulation runner
        scenario: Scenario configuration
        loadpoint: Loadpoint configuration

    Returns:
        Dictionary of metrics
    """
    tick_hours = scenario.tick_minutes / 60.0

    energy_kwh = decisions[COL_ENERGY_KWH].sum()
    cost = (decisions[COL_ENERGY_KWH] * decisions[COL_PRICE]).sum()
    average_price = cost / energy_kwh if energy_kwh > 0 else 0.0

    active = decisions[COL_ACTIVE].astype(bool)
    activations = (active & ~active.shift(fill_value=False)).sum()

    final_soc = decisions[COL_SOC].iloc[-1]
    if isinstance(scenario.goal, EnergyGoal):
        goal_met = decisions[COL_REMAINING_ENERGY_KWH].iloc[-1] <= NUMERICAL_TOLERANCE
    else:
        goal_met = final_soc >= scenario.goal.effective_target - NUMERICAL_TOLERANCE

    return {
        "loadpoint_id": loadpoint.loadpoint_id,
        "energy_charged_kwh": float(energy_kwh),
        "cost": float(cost),
        "average_price": float(average_price),
        "active_hours": float(active.sum() * tick_hours),
        "activations": int(activations),
        "planner_errors": int((decisions[COL_REASON] == DecisionReason.PLANNER_ERROR.value).sum()),
        "final_soc": float(final_soc),
        "goal_met": bool(goal_met),
        "price_unit": scenario.price_unit,
    }
