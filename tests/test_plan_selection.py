"""Test cheapest-slot selection and plan queries."""

from datetime import datetime, timedelta, timezone

import pytest

from evplan_engine.core.schemas import RateInterval
from evplan_engine.core.validate import validate_plan
from evplan_engine.model.plan import InfeasiblePlanError, Plan, select_slots


def at(hour: int, minute: int = 0) -> datetime:
    """Timestamp on the test day."""
    return datetime(2024, 1, 1, hour, minute, tzinfo=timezone.utc)


def rate(start: datetime, end: datetime, price: float) -> RateInterval:
    return RateInterval(start=start, end=end, price=price)


@pytest.fixture
def rate_table():
    """Three hourly slots, cheapest in the middle."""
    return [
        rate(at(10), at(11), 0.30),
        rate(at(11), at(12), 0.10),
        rate(at(12), at(13), 0.20),
    ]


@pytest.fixture
def day_rates():
    """24 hourly slots with irregular prices."""
    prices = [0.31, 0.27, 0.22, 0.18, 0.18, 0.21, 0.29, 0.35, 0.33, 0.28, 0.24, 0.19,
              0.15, 0.14, 0.16, 0.22, 0.30, 0.38, 0.41, 0.37, 0.32, 0.26, 0.23, 0.20]
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        rate(start + timedelta(hours=i), start + timedelta(hours=i + 1), price)
        for i, price in enumerate(prices)
    ]


def test_cheapest_slots_selected(rate_table):
    """Test that the cheapest slots cover the duration, last one truncated."""
    plan = select_slots(rate_table, timedelta(minutes=90), at(13), now=at(9))

    assert list(plan) == [
        rate(at(11), at(12), 0.10),
        rate(at(12), at(12, 30), 0.20),
    ]
    assert plan.duration == timedelta(minutes=90)
    assert plan.average_cost == pytest.approx(0.1333, abs=1e-4)


def test_infeasible_when_table_too_short(rate_table):
    """Test that requiring more time than available raises."""
    with pytest.raises(InfeasiblePlanError) as exc_info:
        select_slots(rate_table, timedelta(hours=4), at(13), now=at(9))

    assert exc_info.value.required_duration == timedelta(hours=4)
    assert exc_info.value.available == timedelta(hours=3)
    assert exc_info.value.deadline == at(13)


def test_empty_rate_table_is_infeasible():
    """Test that an empty forecast is reported, not crashed on."""
    with pytest.raises(InfeasiblePlanError):
        select_slots([], timedelta(minutes=30), at(13), now=at(9))


def test_zero_duration_returns_empty_plan(rate_table):
    """Test that nothing to do yields an empty plan without error."""
    plan = select_slots(rate_table, timedelta(), at(13), now=at(9))

    assert len(plan) == 0
    assert plan.start is None
    assert plan.end is None


def test_deadline_clips_intervals(rate_table):
    """Test that no slot extends past the deadline."""
    plan = select_slots(rate_table, timedelta(minutes=60), at(12, 30), now=at(9))

    assert list(plan) == [rate(at(11), at(12), 0.10)]

    plan = select_slots(rate_table, timedelta(minutes=120), at(12, 30), now=at(9))

    assert plan.end == at(12, 30)
    validate_plan(plan, at(12, 30), timedelta(minutes=120))


def test_earliest_truncated_slot_starts_late(rate_table):
    """Test that a truncated slot before the rest of the plan is moved next to it."""
    plan = select_slots(rate_table, timedelta(minutes=120), at(12, 30), now=at(9))

    assert list(plan) == [
        rate(at(10, 30), at(11), 0.30),
        rate(at(11), at(12), 0.10),
        rate(at(12), at(12, 30), 0.20),
    ]


def test_past_intervals_clipped_to_now(rate_table):
    """Test that nothing is planned before now."""
    plan = select_slots(rate_table, timedelta(minutes=60), at(13), now=at(11, 30))

    assert plan.start == at(11, 30)
    assert list(plan) == [
        rate(at(11, 30), at(12), 0.10),
        rate(at(12), at(12, 30), 0.20),
    ]


def test_overlapping_rates_do_not_overlap_in_plan():
    """Test that overlapping forecast intervals are only used once."""
    rates = [
        rate(at(10), at(12), 0.10),
        rate(at(11), at(13), 0.20),
    ]

    plan = select_slots(rates, timedelta(hours=3), at(13), now=at(9))

    assert list(plan) == [
        rate(at(10), at(12), 0.10),
        rate(at(12), at(13), 0.20),
    ]
    validate_plan(plan, at(13), timedelta(hours=3))


def test_equal_prices_prefer_earliest():
    """Test that ties on price are broken by start time."""
    rates = [
        rate(at(12), at(13), 0.10),
        rate(at(10), at(11), 0.10),
        rate(at(11), at(12), 0.10),
    ]

    plan = select_slots(rates, timedelta(hours=1), at(13), now=at(9))

    assert list(plan) == [rate(at(10), at(11), 0.10)]


def test_plan_invariants_over_many_durations(day_rates):
    """Test ordering, coverage and deadline for a range of durations."""
    now = datetime(2024, 1, 1, 0, 20, tzinfo=timezone.utc)
    deadline = datetime(2024, 1, 1, 21, 45, tzinfo=timezone.utc)
    longest = timedelta(hours=1)

    for minutes in [5, 45, 60, 95, 180, 333, 600, 1200]:
        required = timedelta(minutes=minutes)
        plan = select_slots(day_rates, required, deadline, now=now)

        validate_plan(plan, deadline, required)
        assert plan.duration >= required, f"{minutes} min: plan too short"
        assert plan.duration < required + longest, f"{minutes} min: plan over-allocated"
        assert plan.start >= now, f"{minutes} min: plan starts in the past"
        assert plan.end <= deadline, f"{minutes} min: plan ends after deadline"


def test_cheaper_plan_never_costs_more_than_baseline(day_rates):
    """Test that price ordering beats charging immediately."""
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    deadline = now + timedelta(hours=24)

    plan = select_slots(day_rates, timedelta(hours=5), deadline, now=now)
    earliest = select_slots(day_rates, timedelta(hours=5), deadline, now=now, key=lambda s: s.start)

    assert plan.average_cost <= earliest.average_cost


def test_plan_queries(rate_table):
    """Test start, end, duration and active slot lookups."""
    plan = Plan(rate_table[::-1])

    assert plan.start == at(10)
    assert plan.end == at(13)
    assert plan.duration == timedelta(hours=3)
    assert plan.average_cost == pytest.approx(0.20)

    assert plan.active_slot(at(11, 30)) == rate_table[1]
    # End is exclusive
    assert plan.active_slot(at(11)) == rate_table[1]
    assert plan.active_slot(at(13)) is None
    assert plan.active_slot(at(9, 59)) is None


def test_empty_plan_queries():
    """Test that an empty plan answers every query."""
    plan = Plan()

    assert plan.duration == timedelta()
    assert plan.average_cost == 0.0
    assert plan.active_slot(at(11)) is None
    assert plan.to_frame().empty


def test_sort_is_stable_for_equal_starts():
    """Test that slots sharing a start keep their order."""
    a = rate(at(11), at(11, 30), 0.10)
    b = rate(at(11), at(12), 0.20)

    assert list(Plan([a, b])) == [a, b]
    assert list(Plan([b, a])) == [b, a]


def test_plan_to_frame(rate_table):
    """Test that the plan converts to a rate table dataframe."""
    plan = select_slots(rate_table, timedelta(minutes=90), at(13), now=at(9))
    df = plan.to_frame()

    assert list(df.columns) == ["start", "end", "price"]
    assert len(df) == 2
    assert df["price"].tolist() == [0.10, 0.20]
    assert df["start"].iloc[0] == at(11)
