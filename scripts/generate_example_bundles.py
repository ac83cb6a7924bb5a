"""Generate synthetic example bundles for testing and demonstration."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import numpy as np
import pandas as pd

from evplan_engine.core.schemas import EnergyGoal, LoadpointConfig, PercentageGoal, ScenarioConfig
from evplan_engine.io.bundle import init_bundle

BUNDLES_DIR = Path(__file__).parent.parent / "examples" / "bundles"

START = datetime(2024, 1, 1, 17, 0, tzinfo=timezone.utc)


def hourly_rates(start: datetime, prices: np.ndarray, minutes: int = 60) -> pd.DataFrame:
    """Build a contiguous rate table from a price array."""
    starts = pd.date_range(start, periods=len(prices), freq=f"{minutes}min")
    return pd.DataFrame(
        {
            "start": starts,
            "end": starts + pd.Timedelta(minutes=minutes),
            "price": prices,
        }
    )


def generate_overnight_dynamic_tariff():
    """Generate overnight charging bundle with a dynamic day-ahead tariff."""
    print("Generating overnight_dynamic_tariff bundle...")

    loadpoint_config = LoadpointConfig(
        loadpoint_id="garage",
        max_power_w=11000.0,
        capacity_kwh=60.0,
        charge_efficiency=0.9,
    )

    scenario_config = ScenarioConfig(
        run_id="overnight_001",
        start=START,
        end=START + timedelta(hours=16),
        tick_minutes=5,
        target_time=START + timedelta(hours=14),
        initial_soc=30.0,
        goal=PercentageGoal(target_soc=80.0),
        price_unit="EUR/kWh",
    )

    # Evening peak, cheap night trough, morning ramp
    hours = np.arange(24)
    hour_of_day = (START.hour + hours) % 24
    prices = 0.25 + 0.10 * np.cos((hour_of_day - 19) * np.pi / 12) + np.random.normal(0, 0.01, len(hours))

    bundle_path = BUNDLES_DIR / "overnight_dynamic_tariff"
    init_bundle(bundle_path, loadpoint_config, scenario_config, hourly_rates(START, np.round(prices, 4)))
    print(f"✓ Created {bundle_path}")


def generate_fast_charger_high_soc():
    """Generate fast charging bundle with a high target SoC (charge curve tapering)."""
    print("Generating fast_charger_high_soc bundle...")

    loadpoint_config = LoadpointConfig(
        loadpoint_id="fast_charger",
        max_power_w=22000.0,
        capacity_kwh=77.0,
        charge_efficiency=0.92,
    )

    scenario_config = ScenarioConfig(
        run_id="fast_001",
        start=START,
        end=START + timedelta(hours=12),
        tick_minutes=5,
        target_time=START + timedelta(hours=10),
        initial_soc=50.0,
        goal=PercentageGoal(target_soc=95.0),
        price_unit="EUR/kWh",
    )

    # Quarter-hourly prices
    steps = 12 * 4
    t = np.arange(steps) / 4
    prices = 0.30 - 0.12 * np.sin(t * np.pi / 12) + np.random.normal(0, 0.015, steps)

    bundle_path = BUNDLES_DIR / "fast_charger_high_soc"
    init_bundle(bundle_path, loadpoint_config, scenario_config, hourly_rates(START, np.round(prices, 4), minutes=15))
    print(f"✓ Created {bundle_path}")


def generate_energy_goal_carbon():
    """Generate energy goal bundle planned against grid carbon intensity."""
    print("Generating energy_goal_carbon bundle...")

    loadpoint_config = LoadpointConfig(
        loadpoint_id="carport",
        max_power_w=7400.0,
        capacity_kwh=50.0,
    )

    scenario_config = ScenarioConfig(
        run_id="carbon_001",
        start=START,
        end=START + timedelta(hours=20),
        tick_minutes=10,
        target_time=START + timedelta(hours=18),
        initial_soc=40.0,
        goal=EnergyGoal(energy_kwh=20.0),
        price_unit="gCO2eq/kWh",
    )

    # Carbon intensity dips overnight with wind
    hours = np.arange(20)
    intensity = 350 - 150 * np.exp(-((hours - 9) ** 2) / 8) + np.random.normal(0, 10, len(hours))

    bundle_path = BUNDLES_DIR / "energy_goal_carbon"
    init_bundle(bundle_path, loadpoint_config, scenario_config, hourly_rates(START, np.round(intensity, 1)))
    print(f"✓ Created {bundle_path}")


if __name__ == "__main__":
    np.random.seed(42)

    generate_overnight_dynamic_tariff()
    generate_fast_charger_high_soc()
    generate_energy_goal_carbon()

    print("\n✓ All example bundles generated")
