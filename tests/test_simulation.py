"""Simulation and CLI tests on scenario bundles built in a temp directory."""

import json
from datetime import datetime, timezone

import pandas as pd
import pytest
from typer.testing import CliRunner

from evplan_engine.cli import app
from evplan_engine.core.constants import COL_ACTIVE, COL_PRICE, COL_SOC
from evplan_engine.core.schemas import LoadpointConfig, PercentageGoal, ScenarioConfig
from evplan_engine.io.bundle import init_bundle, load_bundle
from evplan_engine.model.plan import InfeasiblePlanError
from evplan_engine.runners.simulate import run_plan, run_simulation


def at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def rate_table():
    """Evening peak, cheap night, morning shoulder."""
    return pd.DataFrame(
        {
            "start": pd.to_datetime([at(1, 17), at(1, 22), at(2, 6)], utc=True),
            "end": pd.to_datetime([at(1, 22), at(2, 6), at(2, 9)], utc=True),
            "price": [0.40, 0.10, 0.30],
        }
    )


@pytest.fixture
def loadpoint_config():
    """55 kWh battery without losses: 30% SoC is 90 minutes at 11 kW."""
    return LoadpointConfig(
        loadpoint_id="garage",
        max_power_w=11000.0,
        capacity_kwh=55.0,
        charge_efficiency=1.0,
    )


def make_bundle(path, loadpoint_config, rate_table, target_time):
    scenario = ScenarioConfig(
        run_id="overnight",
        start=at(1, 18),
        end=at(2, 8),
        tick_minutes=5,
        target_time=target_time,
        initial_soc=50.0,
        goal=PercentageGoal(target_soc=80.0),
    )
    init_bundle(path, loadpoint_config, scenario, rate_table)
    return path


@pytest.fixture
def bundle(tmp_path, loadpoint_config, rate_table):
    return make_bundle(tmp_path / "overnight", loadpoint_config, rate_table, at(2, 7))


@pytest.fixture
def infeasible_bundle(tmp_path, loadpoint_config, rate_table):
    return make_bundle(tmp_path / "too_soon", loadpoint_config, rate_table, at(1, 18, 30))


def test_bundle_roundtrip(bundle, loadpoint_config):
    """Test that configs survive the YAML round trip."""
    loaded_config, scenario, rate_table = load_bundle(bundle)

    assert loaded_config == loadpoint_config
    assert scenario.target_time == at(2, 7)
    assert isinstance(scenario.goal, PercentageGoal)
    assert len(rate_table) == 3


def test_plan_uses_night_tariff(bundle):
    """Test that the plan picks the night window and beats charging immediately."""
    plan, metrics = run_plan(str(bundle))

    assert plan.start == at(1, 22)
    assert plan.end == at(1, 23, 30)
    assert metrics["plan_average_price"] == pytest.approx(0.10)
    assert metrics["baseline_average_price"] == pytest.approx(0.40)
    assert metrics["savings"] > 0
    assert metrics["required_hours"] == pytest.approx(1.5)


def test_plan_infeasible(infeasible_bundle):
    """Test that planning an impossible target raises."""
    with pytest.raises(InfeasiblePlanError):
        run_plan(str(infeasible_bundle))


def test_simulation_charges_overnight(bundle):
    """Test a full overnight session."""
    decisions, metrics = run_simulation(str(bundle))

    assert metrics["goal_met"], "Should reach target SoC"
    assert metrics["activations"] == 1, "Should charge in one session"
    assert metrics["planner_errors"] == 0
    assert metrics["average_price"] == pytest.approx(0.10)
    assert 80.0 - 1e-6 <= metrics["final_soc"] < 82.0

    active = decisions[decisions[COL_ACTIVE]]
    assert active.index.min() == at(1, 22)
    assert (active[COL_PRICE] == 0.10).all(), "Should only charge in the cheap window"
    assert (decisions[COL_SOC] <= 100.0).all()

    for filename in ["decisions.parquet", "plan.parquet", "metrics.json", "bundle_metadata.json"]:
        assert (bundle / filename).exists(), f"{filename} should be written"


def test_simulation_infeasible_target(infeasible_bundle):
    """Test that an infeasible target never charges and is reported."""
    decisions, metrics = run_simulation(str(infeasible_bundle))

    assert not metrics["goal_met"]
    # every tick up to and including the target time
    assert metrics["planner_errors"] == 7
    assert metrics["energy_charged_kwh"] == 0.0
    assert not decisions[COL_ACTIVE].any()
    assert not (infeasible_bundle / "plan.parquet").exists()


def test_cli_version():
    result = CliRunner().invoke(app, ["version"])

    assert result.exit_code == 0
    assert "EV Plan Engine" in result.output


def test_cli_validate(bundle, tmp_path):
    runner = CliRunner()

    assert runner.invoke(app, ["validate", str(bundle)]).exit_code == 0
    assert runner.invoke(app, ["validate", str(tmp_path / "missing")]).exit_code == 1


def test_cli_plan(bundle, infeasible_bundle):
    runner = CliRunner()

    result = runner.invoke(app, ["plan", str(bundle)])
    assert result.exit_code == 0
    assert "0.100 EUR/kWh" in result.output

    assert runner.invoke(app, ["plan", str(infeasible_bundle)]).exit_code == 1


def test_cli_simulate_and_report(bundle):
    runner = CliRunner()

    assert runner.invoke(app, ["report", str(bundle)]).exit_code == 1

    result = runner.invoke(app, ["simulate", str(bundle)])
    assert result.exit_code == 0

    result = runner.invoke(app, ["report", str(bundle)])
    assert result.exit_code == 0
    assert "SIMULATION RESULTS: garage" in result.output
    assert "Goal met:         yes" in result.output

    metrics = json.loads((bundle / "metrics.json").read_text())
    assert metrics["activations"] == 1
