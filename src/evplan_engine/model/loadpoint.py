"""Loadpoint planner: estimation, slot selection and activity for one charge point.

One instance serves one charge point and is ticked by that charge point's
control loop. The only state kept between ticks is the PlanState returned by
the activity state machine.

Charging past the target time only continues a plan that was still active
when the target passed. Work that no longer fits before the target makes
the plan infeasible, and the resulting error tick clears the state, so an
underestimate discovered in the last minutes stops charging instead.
"""

import logging
import threading
from datetime import timedelta
from typing import Optional

from evplan_engine.core.clock import Clock
from evplan_engine.core.constants import (
    KEY_PLAN_ACTIVE,
    KEY_PROJECTED_START,
    KEY_TARGET_TIME_ACTIVE,
)
from evplan_engine.core.schemas import (
    ChargeRequest,
    DecisionReason,
    LoadpointConfig,
    PlanDecision,
    PlanState,
)
from evplan_engine.io.publish import NullPublisher, Publisher
from evplan_engine.model.activity import evaluate
from evplan_engine.model.estimator import estimate_duration
from evplan_engine.model.plan import Plan, PlanningError
from evplan_engine.model.planner import Planner
from evplan_engine.model.soc import RemainingDurationModel

logger = logging.getLogger(__name__)


class LoadpointPlanner:
    """Charging plan scheduler for a single loadpoint."""

    def __init__(
        self,
        config: LoadpointConfig,
        planner: Optional[Planner],
        soc_model: Optional[RemainingDurationModel],
        clock: Clock,
        publisher: Optional[Publisher] = None,
    ):
        self.config = config
        self.planner = planner
        self.soc_model = soc_model
        self.clock = clock
        self.publisher = publisher or NullPublisher()

        self._lock = threading.Lock()
        self._state = PlanState()

    @property
    def state(self) -> PlanState:
        """Snapshot of the state carried to the next tick."""
        with self._lock:
            return self._state

    def reset(self) -> None:
        """Forget any active plan, e.g. when the vehicle disconnects."""
        with self._lock:
            self._state = PlanState()

    def planner_unit(self) -> str:
        """Price unit of the configured rate provider."""
        if self.planner is None:
            return ""
        return self.planner.unit()

    def estimate_duration(self, request: ChargeRequest) -> timedelta:
        """Estimated charging time for the request's goal.

        Raises:
            EstimationError: If the duration cannot be computed yet
        """
        return estimate_duration(
            request.goal,
            request.max_power_w,
            request.current_soc,
            self.soc_model,
            self.config.charge_efficiency,
        )

    def get_plan(self, request: ChargeRequest) -> tuple[timedelta, Plan]:
        """Create a charging plan.

        Returns:
            Tuple of (required total charging duration, plan sorted by time).
            Planning that does not apply yields (0, empty plan).

        Raises:
            PlanningError: If the duration cannot be estimated or no plan covers it
        """
        target_time = request.target_time

        if self.planner is None or self.soc_model is None or target_time is None:
            return timedelta(), Plan()

        past_target = self.clock.until(target_time) < timedelta()

        # don't start planning into the past
        if past_target and not self.state.active:
            return timedelta(), Plan()

        required_duration = self.estimate_duration(request)

        # nothing left to select once the target has passed, keep evaluating the goal
        if past_target:
            return required_duration, Plan()

        return required_duration, self.planner.plan(required_duration, target_time)

    def planner_active(self, request: ChargeRequest) -> PlanDecision:
        """Evaluate the plan for the current tick and update state.

        Planning errors are logged and treated as inactive for this tick.

        Args:
            request: Goal, target time, SoC and power ceiling for this tick

        Returns:
            Decision for this tick
        """
        now = self.clock.now()
        previous = self.state

        try:
            required_duration, plan = self.get_plan(request)
        except PlanningError as e:
            logger.error(
                "%s: planner: %s (target time %s, max power %.0fW)",
                self.config.loadpoint_id,
                e,
                request.target_time,
                request.max_power_w,
            )
            decision = PlanDecision(
                active=False, state=PlanState(), reason=DecisionReason.PLANNER_ERROR
            )
        else:
            if required_duration > timedelta():
                self._log_plan(request, required_duration, plan)

            decision = evaluate(
                now,
                plan,
                required_duration,
                request.target_time,
                previous,
                small_slot_duration=self.config.small_slot_duration,
                short_plan_duration=self.config.short_plan_duration,
            )

            if decision.reason not in (DecisionReason.SLOT_ACTIVE, DecisionReason.IDLE):
                logger.debug(
                    "%s: %s, remaining %s",
                    self.config.loadpoint_id,
                    decision.reason.value,
                    required_duration,
                )

        with self._lock:
            self._state = decision.state

        self.publisher.publish(KEY_PLAN_ACTIVE, decision.active)
        self.publisher.publish(KEY_TARGET_TIME_ACTIVE, decision.active)
        self.publisher.publish(KEY_PROJECTED_START, decision.projected_start)

        return decision

    def _log_plan(self, request: ChargeRequest, required_duration: timedelta, plan: Plan) -> None:
        logger.debug(
            "%s: planned %s until %s at %.0fW: total plan duration: %s, avg cost: %.3f",
            self.config.loadpoint_id,
            required_duration,
            request.target_time,
            request.max_power_w,
            plan.duration,
            plan.average_cost,
        )
        for slot in plan:
            logger.debug("  slot from: %s to %s cost %.3f", slot.start, slot.end, slot.price)
