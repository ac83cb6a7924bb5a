"""Input and plan validation beyond Pydantic schemas."""

from datetime import datetime, timedelta
from typing import Iterable, Optional

import pandas as pd

from evplan_engine.core.constants import COL_END, COL_PRICE, COL_START, RATE_COLUMNS
from evplan_engine.core.schemas import RateInterval


class ValidationError(Exception):
    """Raised when validation fails."""

    pass


def validate_rate_table(df: pd.DataFrame) -> None:
    """Validate a rate table dataframe.

    Rate intervals may overlap or leave gaps, but each one must have a
    positive length and a price.

    Args:
        df: Rate table with start, end and price columns

    Raises:
        ValidationError: If validation fails
    """
    # Check required columns
    missing_cols = set(RATE_COLUMNS) - set(df.columns)
    if missing_cols:
        raise ValidationError(f"Missing required columns: {missing_cols}")

    # Check timestamp types
    for col in [COL_START, COL_END]:
        if not pd.api.types.is_datetime64_any_dtype(df[col]):
            raise ValidationError(f"Column {col} must contain timestamps")

    # Check for NaN values
    if df[RATE_COLUMNS].isna().any().any():
        nan_cols = df[RATE_COLUMNS].columns[df[RATE_COLUMNS].isna().any()].tolist()
        raise ValidationError(f"NaN values found in columns: {nan_cols}")

    # Check interval lengths
    bad = df[df[COL_START] >= df[COL_END]]
    if len(bad) > 0:
        raise ValidationError(f"{len(bad)} intervals do not end after they start, first at {bad[COL_START].iloc[0]}")

    if not pd.api.types.is_numeric_dtype(df[COL_PRICE]):
        raise ValidationError(f"Column {COL_PRICE} must be numeric")


def validate_plan(
    slots: Iterable[RateInterval],
    deadline: datetime,
    required_duration: Optional[timedelta] = None,
) -> None:
    """Validate that a plan is ordered, non-overlapping and finishes in time.

    Args:
        slots: Planned intervals
        deadline: Time by which charging must be complete
        required_duration: Charging time the plan must cover (optional)

    Raises:
        ValidationError: If the plan breaks an ordering or coverage rule
    """
    slots = list(slots)

    for prev, slot in zip(slots, slots[1:]):
        if slot.start < prev.start:
            raise ValidationError(f"Plan not sorted by start: {slot.start} follows {prev.start}")
        if slot.start < prev.end:
            raise ValidationError(f"Plan slots overlap: {prev.start}-{prev.end} and {slot.start}-{slot.end}")

    if slots and slots[-1].end > deadline:
        raise ValidationError(f"Plan ends at {slots[-1].end}, after deadline {deadline}")

    if required_duration is not None:
        total = sum((slot.duration for slot in slots), timedelta())
        if total < required_duration:
            raise ValidationError(f"Plan covers {total}, less than required {required_duration}")
