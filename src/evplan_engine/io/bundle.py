"""Scenario bundle I/O operations.

A scenario bundle is a folder containing:
- loadpoint.yaml: Loadpoint configuration
- scenario.yaml: Scenario configuration (window, goal, target time)
- rates.parquet: Rate table
- (outputs):
  - decisions.parquet: Per-tick planner decisions
  - plan.parquet: Plan computed at scenario start
  - metrics.json: Computed metrics
  - bundle_metadata.json: Reproducibility metadata
"""

import json
from pathlib import Path
from typing import Optional

import pandas as pd
import yaml

from evplan_engine import __version__
from evplan_engine.core.schemas import BundleMetadata, LoadpointConfig, ScenarioConfig
from evplan_engine.io.formats import read_parquet_rates, write_parquet_rates, write_parquet_timeseries

REQUIRED_FILES = ["loadpoint.yaml", "scenario.yaml", "rates.parquet"]


def load_bundle(bundle_path: str | Path) -> tuple[LoadpointConfig, ScenarioConfig, pd.DataFrame]:
    """Load a scenario bundle.

    Args:
        bundle_path: Path to bundle directory

    Returns:
        Tuple of (loadpoint_config, scenario_config, rate_table)
    """
    bundle_path = Path(bundle_path)

    if not bundle_path.exists():
        raise FileNotFoundError(f"Bundle not found: {bundle_path}")

    # Load configs
    with open(bundle_path / "loadpoint.yaml") as f:
        loadpoint_config = LoadpointConfig(**yaml.safe_load(f))

    with open(bundle_path / "scenario.yaml") as f:
        scenario_config = ScenarioConfig(**yaml.safe_load(f))

    rate_table = read_parquet_rates(str(bundle_path / "rates.parquet"))

    return loadpoint_config, scenario_config, rate_table


def write_results(
    bundle_path: str | Path,
    decisions: pd.DataFrame,
    plan: Optional[pd.DataFrame] = None,
    metrics: dict | None = None,
) -> None:
    """Write results to bundle.

    Args:
        bundle_path: Path to bundle directory
        decisions: Per-tick decisions indexed by timestamp
        plan: Optional plan rate table
        metrics: Optional metrics dictionary
    """
    bundle_path = Path(bundle_path)
    bundle_path.mkdir(exist_ok=True)

    write_parquet_timeseries(decisions, str(bundle_path / "decisions.parquet"))

    if plan is not None:
        write_parquet_rates(plan, str(bundle_path / "plan.parquet"))

    if metrics is not None:
        with open(bundle_path / "metrics.json", "w") as f:
            json.dump(metrics, f, indent=2, default=str)

    metadata = BundleMetadata(evplan_version=__version__)
    with open(bundle_path / "bundle_metadata.json", "w") as f:
        json.dump(metadata.model_dump(), f, indent=2, default=str)


def init_bundle(
    bundle_path: str | Path,
    loadpoint_config: LoadpointConfig,
    scenario_config: ScenarioConfig,
    rate_table: pd.DataFrame,
) -> None:
    """Initialize a new scenario bundle.

    Args:
        bundle_path: Path to bundle directory
        loadpoint_config: Loadpoint configuration
        scenario_config: Scenario configuration
        rate_table: Rate table dataframe
    """
    bundle_path = Path(bundle_path)
    bundle_path.mkdir(parents=True, exist_ok=True)

    with open(bundle_path / "loadpoint.yaml", "w") as f:
        yaml.safe_dump(loadpoint_config.model_dump(mode="json"), f, default_flow_style=False)

    with open(bundle_path / "scenario.yaml", "w") as f:
        yaml.safe_dump(scenario_config.model_dump(mode="json"), f, default_flow_style=False)

    write_parquet_rates(rate_table, str(bundle_path / "rates.parquet"))


def validate_bundle(bundle_path: str | Path) -> bool:
    """Validate that a bundle has all required files.

    Args:
        bundle_path: Path to bundle directory

    Returns:
        True if valid

    Raises:
        ValueError: If bundle is invalid
    """
    bundle_path = Path(bundle_path)

    for filename in REQUIRED_FILES:
        if not (bundle_path / filename).exists():
            raise ValueError(f"Missing required file: {filename}")

    return True
