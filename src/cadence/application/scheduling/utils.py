"""
Scheduling utilities shared by the algorithm implementations.

This is a pure computation module with no I/O.
"""

import math
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from numbers import Real

from cadence.domain.constants import MAX_GRADE, MIN_EASE_FACTOR, SECONDS_PER_DAY
from cadence.domain.scheduling.models import SchedulingState


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero for positive values.

    ``round()`` uses banker's rounding (round(2.5) == 2), which would shrink
    some SM-2 intervals by a day.
    """
    return math.floor(value + 0.5)


def is_real_number(value: object) -> bool:
    """True for finite ints and floats. Booleans are rejected."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


def is_non_negative_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def next_ease_factor(ease_factor: float, grade: int) -> float:
    """
    SM-2 ease-factor update, floored at 1.3.

    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    """
    miss = MAX_GRADE - grade
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def update_with_interval(
    state: SchedulingState, interval_days: int, reviewed_at: datetime
) -> SchedulingState:
    """Return a copy of ``state`` due ``interval_days`` after ``reviewed_at``."""
    return replace(
        state,
        next_review_at=reviewed_at + timedelta(days=interval_days),
        last_review_at=reviewed_at,
    )


def _ceil_days(delta: timedelta) -> int:
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def previous_interval_days(state: SchedulingState) -> int:
    """
    Length in whole days of the interval the card is currently serving.

    Measured from the last review to the next due time. A card that was
    never reviewed counts as a 1-day interval.
    """
    if state.last_review_at is None:
        return 1
    return max(1, _ceil_days(state.next_review_at - state.last_review_at))


def calculate_interval(state: SchedulingState, from_time: datetime | None = None) -> int:
    """
    Days from ``from_time`` (default: now) until the card is due, never negative.
    """
    base = from_time or utc_now()
    return max(0, _ceil_days(state.next_review_at - base))


def calculate_interval_change(
    previous: SchedulingState,
    new: SchedulingState,
    from_time: datetime | None = None,
) -> int:
    """
    Change in interval between two states.

    Positive means the interval grew, negative means it shrank.
    """
    base = from_time or utc_now()
    return calculate_interval(new, base) - calculate_interval(previous, base)


def is_due(state: SchedulingState, now: datetime | None = None) -> bool:
    return state.next_review_at <= (now or utc_now())


def days_until_review(state: SchedulingState, now: datetime | None = None) -> int:
    """Whole days until the card is due; 0 if it is already due."""
    return calculate_interval(state, now)
