"""Charging duration estimation.

Turns a charging goal and the available power into the charging time the
planner has to find slots for.
"""

import logging
from datetime import timedelta
from typing import Optional

from evplan_engine.core.constants import TAPER_HIGH_POWER, TAPER_LOW_POWER
from evplan_engine.core.schemas import EnergyGoal, PercentageGoal
from evplan_engine.model.plan import PlanningError
from evplan_engine.model.soc import RemainingDurationModel

logger = logging.getLogger(__name__)


class EstimationError(PlanningError):
    """Raised when the charging duration cannot be computed yet."""

    pass


def taper_duration(
    duration: timedelta, current_soc: float, target_soc: float, max_power_w: float
) -> timedelta:
    """Extra time for reduced charge power near the top of the charge curve.

    Args:
        duration: Remaining duration at full power
        current_soc: Current SoC in percent
        target_soc: Target SoC in percent
        max_power_w: Charging power in W

    Returns:
        Additional duration, zero when no band applies
    """
    span = target_soc - current_soc
    if span <= 0:
        return timedelta()

    for soc_threshold, power_threshold, factor in (TAPER_HIGH_POWER, TAPER_LOW_POWER):
        if target_soc > soc_threshold and max_power_w > power_threshold:
            additional = factor * (target_soc - soc_threshold) / span * duration
            logger.debug(
                "add additional charging time %s for soc > %.0f%%",
                additional,
                soc_threshold,
            )
            return additional

    return timedelta()


def estimate_duration(
    goal: EnergyGoal | PercentageGoal,
    max_power_w: float,
    current_soc: Optional[float],
    soc_model: Optional[RemainingDurationModel],
    charge_efficiency: float,
) -> timedelta:
    """Estimate the total charging time needed to meet a goal.

    An energy goal takes precedence over a percentage goal. Percentage goals
    are delegated to the SoC model and corrected for charge curve tapering.
    The result is inflated by the charge efficiency to cover losses.

    Args:
        goal: Energy or percentage goal
        max_power_w: Available charging power in W
        current_soc: Current vehicle SoC in percent (percentage goals only)
        soc_model: Remaining-duration model (percentage goals only)
        charge_efficiency: Round-trip charge efficiency, 0 < e <= 1

    Returns:
        Estimated charging duration

    Raises:
        EstimationError: If power, SoC or SoC model are unavailable
    """
    if max_power_w <= 0:
        raise EstimationError(f"cannot estimate duration at {max_power_w:.0f}W")

    if not 0 < charge_efficiency <= 1:
        raise EstimationError(f"invalid charge efficiency {charge_efficiency}")

    if isinstance(goal, EnergyGoal):
        duration = timedelta(hours=goal.energy_kwh * 1e3 / max_power_w)
    else:
        if current_soc is None:
            raise EstimationError("vehicle soc unknown")
        if soc_model is None:
            raise EstimationError("no soc model configured")

        target_soc = goal.effective_target
        duration = soc_model.remaining_charge_duration(current_soc, target_soc, max_power_w)
        duration += taper_duration(duration, current_soc, target_soc, max_power_w)

    return duration / charge_efficiency
