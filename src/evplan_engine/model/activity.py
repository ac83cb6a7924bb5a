"""Plan activity state machine.

Decides for the current instant whether the plan wants the charger on.
Besides the instantaneous slot lookup the decision depends on the state of
the previous tick, which keeps the charger from flapping at slot edges:

1. No charging required: off, memory cleared
2. Inside a plan slot: on, unless the plan was off and the slot is nearly over
3. Between slots after having been on, the first matching rule wins:
   a. deadline passed: keep charging
   b. the last granted slot has not ended yet: keep charging
   c. little work left: keep charging
   d. next slot starts shortly: off, flagged as an imminent restart, memory
      kept so the flag holds until the slot starts
   e. otherwise off, memory cleared
4. Between slots and off: stay off

Rule 3a keeps charging past an unmet deadline. It is provisional until a
richer scheduling mechanism exists.
"""

from datetime import datetime, timedelta
from typing import Optional

from evplan_engine.core.constants import SHORT_PLAN_DURATION, SMALL_SLOT_DURATION
from evplan_engine.core.schemas import DecisionReason, PlanDecision, PlanState
from evplan_engine.model.plan import Plan

INACTIVE = PlanState()


def _decide(
    active: bool,
    reason: DecisionReason,
    plan: Plan,
    required_duration: timedelta,
    state: PlanState = INACTIVE,
    restart_imminent: bool = False,
) -> PlanDecision:
    return PlanDecision(
        active=active,
        state=state,
        projected_start=plan.start,
        restart_imminent=restart_imminent,
        required_duration=required_duration,
        reason=reason,
    )


def evaluate(
    now: datetime,
    plan: Plan,
    required_duration: timedelta,
    deadline: Optional[datetime],
    previous: PlanState,
    small_slot_duration: timedelta = SMALL_SLOT_DURATION,
    short_plan_duration: timedelta = SHORT_PLAN_DURATION,
) -> PlanDecision:
    """Evaluate the plan for one tick.

    Pure function: the returned decision carries the state to pass in on
    the next tick.

    Args:
        now: Current time
        plan: Plan computed for this tick
        required_duration: Charging time still needed
        deadline: Target time, None if unset
        previous: State returned by the previous tick
        small_slot_duration: Slot remainder not worth starting for
        short_plan_duration: Remaining work that keeps an active plan charging

    Returns:
        Decision with the new state and projected plan start
    """
    if required_duration <= timedelta():
        return _decide(False, DecisionReason.NO_REQUIREMENT, plan, required_duration)

    slot = plan.active_slot(now)

    if slot is not None:
        # ignore short slot remainders unless already charging
        if not previous.active and slot.end - now < small_slot_duration:
            return _decide(False, DecisionReason.SLOT_TOO_SHORT, plan, required_duration)

        state = PlanState(active=True, active_slot_end=slot.end)
        return _decide(True, DecisionReason.SLOT_ACTIVE, plan, required_duration, state)

    if not previous.active:
        return _decide(False, DecisionReason.IDLE, plan, required_duration)

    # plan was active earlier and the goal has not been met yet
    if deadline is not None and now > deadline:
        return _decide(True, DecisionReason.PAST_DEADLINE, plan, required_duration, previous)

    if previous.active_slot_end is not None and now < previous.active_slot_end:
        return _decide(True, DecisionReason.SLOT_CONTINUATION, plan, required_duration, previous)

    if required_duration < short_plan_duration:
        return _decide(True, DecisionReason.SHORT_REMAINDER, plan, required_duration, previous)

    if plan.start is not None and now < plan.start and plan.start - now < small_slot_duration:
        return _decide(
            False, DecisionReason.RESTART_IMMINENT, plan, required_duration, previous, restart_imminent=True
        )

    return _decide(False, DecisionReason.PLAN_PAUSED, plan, required_duration)
