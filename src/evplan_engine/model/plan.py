"""Charging plans and cheapest-slot selection."""

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

import pandas as pd

from evplan_engine.core.constants import COL_END, COL_PRICE, COL_START, RATE_COLUMNS
from evplan_engine.core.schemas import RateInterval


class PlanningError(Exception):
    """Base class for errors that make a plan unavailable for one tick."""

    pass


class InfeasiblePlanError(PlanningError):
    """Raised when the rate table cannot cover the required duration before the deadline."""

    def __init__(self, required_duration: timedelta, deadline: datetime, available: timedelta):
        self.required_duration = required_duration
        self.deadline = deadline
        self.available = available
        super().__init__(
            f"cannot plan {required_duration} of charging before {deadline}: "
            f"only {available} available in rate table"
        )


def sort_by_time(slot: RateInterval):
    return slot.start


def sort_by_cost(slot: RateInterval):
    """Cheapest first, earliest first among equal prices."""
    return (slot.price, slot.start)


def find_active_slot(slots: Iterable[RateInterval], now: datetime) -> Optional[RateInterval]:
    """Return the first interval containing `now`, or None."""
    for slot in slots:
        if slot.start <= now < slot.end:
            return slot
    return None


class Plan(Sequence):
    """Ordered set of rate intervals selected for charging.

    Slots are kept sorted ascending by start. Sorting is stable so slots
    sharing a start time keep their selection order.
    """

    def __init__(self, slots: Iterable[RateInterval] = ()):
        self._slots = tuple(sorted(slots, key=sort_by_time))

    def __getitem__(self, index):
        return self._slots[index]

    def __len__(self) -> int:
        return len(self._slots)

    def __eq__(self, other) -> bool:
        if isinstance(other, Plan):
            return self._slots == other._slots
        return NotImplemented

    def __repr__(self) -> str:
        return f"Plan({list(self._slots)!r})"

    @property
    def start(self) -> Optional[datetime]:
        """Start of the first slot."""
        return self._slots[0].start if self._slots else None

    @property
    def end(self) -> Optional[datetime]:
        """End of the last slot."""
        return self._slots[-1].end if self._slots else None

    @property
    def duration(self) -> timedelta:
        return sum((slot.duration for slot in self._slots), timedelta())

    @property
    def average_cost(self) -> float:
        """Duration-weighted mean price over all slots."""
        total = self.duration
        if not total:
            return 0.0
        weighted = sum(slot.price * slot.duration.total_seconds() for slot in self._slots)
        return weighted / total.total_seconds()

    def active_slot(self, now: datetime) -> Optional[RateInterval]:
        return find_active_slot(self._slots, now)

    def to_frame(self) -> pd.DataFrame:
        """Plan slots as a dataframe with start, end and price columns."""
        df = pd.DataFrame(
            [[slot.start, slot.end, slot.price] for slot in self._slots],
            columns=RATE_COLUMNS,
        )
        for col in [COL_START, COL_END]:
            df[col] = pd.to_datetime(df[col], utc=True)
        df[COL_PRICE] = df[COL_PRICE].astype(float)
        return df


def _uncovered(slot: RateInterval, chosen: list[RateInterval]) -> list[RateInterval]:
    """Split `slot` into the parts not already covered by chosen slots."""
    pieces = [(slot.start, slot.end)]

    for taken in chosen:
        remaining = []
        for start, end in pieces:
            if taken.end <= start or taken.start >= end:
                remaining.append((start, end))
                continue
            if start < taken.start:
                remaining.append((start, taken.start))
            if taken.end < end:
                remaining.append((taken.end, end))
        pieces = remaining

    return [slot.model_copy(update={"start": start, "end": end}) for start, end in sorted(pieces)]


def select_slots(
    rates: Iterable[RateInterval],
    required_duration: timedelta,
    deadline: datetime,
    now: datetime,
    key: Callable[[RateInterval], object] = sort_by_cost,
) -> Plan:
    """Select the slots to charge in.

    Strategy:
    1. Clip every interval to the window between now and the deadline
    2. Order candidates by `key` (cheapest first by default)
    3. Take candidates until the required duration is covered, skipping any
       part already covered by an earlier choice
    4. Shorten the slot that overshoots: a slot earlier than everything
       chosen so far starts later, any other slot ends earlier

    Args:
        rates: Rate table from the forecast provider
        required_duration: Charging time to cover
        deadline: Time by which charging must be complete
        now: Current time, nothing is planned before it
        key: Candidate ordering

    Returns:
        Plan sorted by start time

    Raises:
        InfeasiblePlanError: If the rate table does not cover the required duration
    """
    if required_duration <= timedelta():
        return Plan()

    candidates = []
    for rate in rates:
        start = max(rate.start, now)
        end = min(rate.end, deadline)
        if start >= end:
            continue
        if (start, end) != (rate.start, rate.end):
            rate = rate.model_copy(update={"start": start, "end": end})
        candidates.append(rate)

    candidates.sort(key=key)

    remaining = required_duration
    chosen: list[RateInterval] = []

    for candidate in candidates:
        for piece in _uncovered(candidate, chosen):
            excess = piece.duration - remaining
            if excess > timedelta():
                if chosen and all(piece.start < slot.start for slot in chosen):
                    piece = piece.model_copy(update={"start": piece.start + excess})
                else:
                    piece = piece.model_copy(update={"end": piece.end - excess})

            chosen.append(piece)
            remaining -= piece.duration

            if remaining <= timedelta():
                break

        if remaining <= timedelta():
            break

    if remaining > timedelta():
        raise InfeasiblePlanError(required_duration, deadline, required_duration - remaining)

    return Plan(chosen)
