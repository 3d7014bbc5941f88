"""
SuperMemo 2 (SM-2) scheduler.

Maps RecallOutcome onto SuperMemo grades and implements the classic SM-2
interval and ease-factor rules. Pure computation, no I/O.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from cadence.domain.constants import (
    DEFAULT_EASE_FACTOR,
    FIRST_INTERVAL_DAYS,
    MIGRATED_REPETITION_COUNT,
    MIN_EASE_FACTOR,
    PASSING_GRADE,
    SECOND_INTERVAL_DAYS,
    SM2_NEW_CARD_DELAY,
)
from cadence.domain.errors import IncompatibleStateError
from cadence.domain.scheduling.models import (
    AlgorithmTag,
    RecallOutcome,
    RescheduleResult,
    SchedulingState,
    Sm2Data,
)
from cadence.domain.scheduling.ports import AlgorithmScheduler

from .serialization import dump_record, load_record, tag_value
from .utils import (
    is_non_negative_int,
    is_real_number,
    next_ease_factor,
    previous_interval_days,
    round_half_up,
    update_with_interval,
    utc_now,
)

logger = logging.getLogger(__name__)

GRADES: dict[RecallOutcome, int] = {
    RecallOutcome.HARD: 2,  # failure, resets the repetition count
    RecallOutcome.MEDIUM: 3,  # correct with serious difficulty
    RecallOutcome.EASY: 5,  # perfect response
}


@dataclass(frozen=True)
class Sm2Step:
    """Outcome of one SM-2 step, before it is applied to a state."""

    interval_days: int
    repetition_count: int
    ease_factor: float


def apply_sm2(data: Sm2Data, grade: int, previous_interval: int) -> Sm2Step:
    """
    Apply the SM-2 rules for one review.

    Args:
        data: Current ease factor and repetition count.
        grade: SuperMemo grade (0-5). 3 and above is a successful recall.
        previous_interval: Interval in days the card was serving.

    Returns:
        The new interval, repetition count and ease factor.
    """
    if grade >= PASSING_GRADE:
        if data.repetition_count == 0:
            interval = FIRST_INTERVAL_DAYS
        elif data.repetition_count == 1:
            interval = SECOND_INTERVAL_DAYS
        else:
            interval = max(1, round_half_up(previous_interval * data.ease_factor))
        repetitions = data.repetition_count + 1
    else:
        interval = FIRST_INTERVAL_DAYS
        repetitions = 0

    return Sm2Step(
        interval_days=interval,
        repetition_count=repetitions,
        ease_factor=next_ease_factor(data.ease_factor, grade),
    )


class Sm2Scheduler(AlgorithmScheduler):
    """
    Classic SM-2 algorithm.

    New cards are due one day after creation. Grades below 3 reset the
    repetition count and the interval to one day.
    """

    @property
    def tag(self) -> str:
        return AlgorithmTag.SM2.value

    def initialize(self, now: datetime | None = None) -> SchedulingState:
        now = now or utc_now()
        return SchedulingState(
            algorithm_tag=self.tag,
            next_review_at=now + SM2_NEW_CARD_DELAY,
            last_review_at=None,
            algorithm_data=Sm2Data(
                ease_factor=DEFAULT_EASE_FACTOR,
                repetition_count=0,
            ),
        )

    def reschedule(
        self, state: SchedulingState, outcome: RecallOutcome, reviewed_at: datetime
    ) -> RescheduleResult:
        if not self.is_compatible(state):
            raise IncompatibleStateError(self.tag)

        grade = GRADES[RecallOutcome(outcome)]
        try:
            step = apply_sm2(state.algorithm_data, grade, previous_interval_days(state))
            new_state = update_with_interval(
                replace(
                    state,
                    algorithm_data=Sm2Data(
                        ease_factor=step.ease_factor,
                        repetition_count=step.repetition_count,
                    ),
                ),
                step.interval_days,
                reviewed_at,
            )
        except OverflowError as e:
            raise IncompatibleStateError(self.tag, "next review date is out of range") from e

        logger.debug(
            f"SM-2 grade={grade} reps={state.algorithm_data.repetition_count}"
            f"->{step.repetition_count} interval={step.interval_days}d "
            f"ef={step.ease_factor:.2f}"
        )
        return RescheduleResult(state=new_state, was_successful=grade >= PASSING_GRADE)

    def is_compatible(self, state: SchedulingState) -> bool:
        data = state.algorithm_data
        return (
            isinstance(data, Sm2Data)
            and is_real_number(data.ease_factor)
            and data.ease_factor >= MIN_EASE_FACTOR
            and is_non_negative_int(data.repetition_count)
        )

    def migrate_from(self, state: SchedulingState, source_tag: str) -> SchedulingState | None:
        if tag_value(source_tag) == self.tag:
            return state if self.is_compatible(state) else None

        if not isinstance(state.next_review_at, datetime):
            return None

        # Foreign data is not interpreted: start from defaults, keep the due date.
        return SchedulingState(
            algorithm_tag=self.tag,
            next_review_at=state.next_review_at,
            last_review_at=state.last_review_at,
            algorithm_data=Sm2Data(
                ease_factor=DEFAULT_EASE_FACTOR,
                repetition_count=MIGRATED_REPETITION_COUNT,
            ),
        )

    def serialize(self, state: SchedulingState) -> dict[str, Any]:
        if not self.is_compatible(state):
            raise IncompatibleStateError(self.tag)

        data = state.algorithm_data
        return dump_record(
            state,
            {
                "easeFactor": data.ease_factor,
                "repetitionCount": data.repetition_count,
            },
        )

    def deserialize(self, record: dict[str, Any]) -> SchedulingState:
        parsed = load_record(record, self.tag)
        raw = parsed.algorithm_data
        return SchedulingState(
            algorithm_tag=parsed.algorithm_tag,
            next_review_at=parsed.next_review_at,
            last_review_at=parsed.last_review_at,
            algorithm_data=Sm2Data(
                ease_factor=raw.get("easeFactor"),
                repetition_count=raw.get("repetitionCount"),
            ),
        )
