"""Baseline charging plan for comparison.

Simple heuristic: start charging immediately and keep going until the goal
is met, ignoring prices.
"""

from datetime import datetime, timedelta

from evplan_engine.core.schemas import RateInterval
from evplan_engine.model.plan import Plan, select_slots, sort_by_time


def compute_baseline_plan(
    rates: list[RateInterval],
    required_duration: timedelta,
    deadline: datetime,
    now: datetime,
) -> Plan:
    """Compute the charge-immediately plan.

    Uses the same slot selection as the planner, ordering candidates by start
    time instead of price.

    Args:
        rates: Rate table
        required_duration: Charging time to cover
        deadline: Time by which charging must be complete
        now: Current time

    Returns:
        Plan covering the earliest available intervals

    Raises:
        InfeasiblePlanError: If the rate table does not cover the required duration
    """
    return select_slots(rates, required_duration, deadline, now, key=sort_by_time)
