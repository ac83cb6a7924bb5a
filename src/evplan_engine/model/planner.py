"""Planner: slot selection against a live rate provider."""

import logging
from datetime import datetime, timedelta

from evplan_engine.core.clock import Clock
from evplan_engine.forecast.interface import RateProvider
from evplan_engine.model.plan import Plan, select_slots

logger = logging.getLogger(__name__)


class Planner:
    """Selects the cheapest charging slots from a rate provider."""

    def __init__(self, provider: RateProvider, clock: Clock):
        self.provider = provider
        self.clock = clock

    def plan(self, required_duration: timedelta, deadline: datetime) -> Plan:
        """Plan `required_duration` of charging to finish by `deadline`.

        Raises:
            InfeasiblePlanError: If the forecast cannot cover the duration
        """
        if required_duration <= timedelta():
            return Plan()

        rates = self.provider.rates()
        logger.debug("planning %s until %s over %d rates", required_duration, deadline, len(rates))

        return select_slots(rates, required_duration, deadline, self.clock.now())

    def unit(self) -> str:
        return self.provider.unit()
