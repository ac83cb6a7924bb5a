"""Rate provider interface."""

from typing import Protocol

from evplan_engine.core.schemas import RateInterval


class RateProvider(Protocol):
    """Protocol for rate providers.

    Rate providers return the current price or carbon intensity forecast
    as a list of intervals. The list may be empty or stale; the planner
    reports an infeasible plan rather than failing.
    """

    def rates(self) -> list[RateInterval]:
        """Return the forecast as rate intervals ordered by start."""
        ...

    def unit(self) -> str:
        """Return the unit of the interval prices, e.g. EUR/kWh or gCO2eq/kWh."""
        ...
