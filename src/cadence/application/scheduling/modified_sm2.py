"""
Modified SM-2 scheduler with a bounded-failure recovery loop.

A hard recall does not immediately grade the card as failed. The card
enters a failed state and comes back every 45 seconds until the learner
has recalled it ``recovery_threshold`` times without another hard recall.
Only then is the lapse handed to SM-2, graded as a failure.

States:
    Healthy (is_failed=False): hard -> Failed, anything else -> SM-2.
    Failed (is_failed=True, recalls_remaining=n):
        hard -> restart the loop (n = threshold)
        non-hard, n > 1 -> n - 1
        non-hard, n == 1 -> SM-2 with a forced hard grade, back to Healthy
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any

from cadence.domain.constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_RECOVERY_THRESHOLD,
    MIGRATED_REPETITION_COUNT,
    MODIFIED_SM2_NEW_CARD_DELAY,
    RECOVERY_STEP_DELAY,
)
from cadence.domain.errors import IncompatibleStateError
from cadence.domain.scheduling.models import (
    AlgorithmTag,
    ModifiedSm2Data,
    RecallOutcome,
    RescheduleResult,
    SchedulingState,
    Sm2Data,
)
from cadence.domain.scheduling.ports import AlgorithmScheduler

from .serialization import dump_record, load_record, tag_value
from .sm2 import Sm2Scheduler
from .utils import is_non_negative_int, utc_now

logger = logging.getLogger(__name__)


class ModifiedSm2Scheduler(AlgorithmScheduler):
    """
    SM-2 wrapped in a recovery loop for lapsed cards.

    Owns a private Sm2Scheduler and never hands it its own data: fields are
    projected into an Sm2Data value before delegating and lifted back
    afterwards.
    """

    def __init__(self, recovery_threshold: int = DEFAULT_RECOVERY_THRESHOLD):
        """
        Args:
            recovery_threshold: Non-hard recalls needed to close a failure episode.
        """
        if not is_non_negative_int(recovery_threshold) or recovery_threshold < 1:
            raise ValueError(
                f"recovery_threshold must be a positive integer, got {recovery_threshold!r}"
            )
        self.recovery_threshold = recovery_threshold
        self._sm2 = Sm2Scheduler()

    @property
    def tag(self) -> str:
        return AlgorithmTag.MODIFIED_SM2.value

    def initialize(self, now: datetime | None = None) -> SchedulingState:
        now = now or utc_now()
        return SchedulingState(
            algorithm_tag=self.tag,
            next_review_at=now + MODIFIED_SM2_NEW_CARD_DELAY,
            last_review_at=None,
            algorithm_data=ModifiedSm2Data(
                ease_factor=DEFAULT_EASE_FACTOR,
                repetition_count=0,
                is_failed=False,
                recalls_remaining=0,
            ),
        )

    def reschedule(
        self, state: SchedulingState, outcome: RecallOutcome, reviewed_at: datetime
    ) -> RescheduleResult:
        if not self.is_compatible(state):
            raise IncompatibleStateError(self.tag)

        outcome = RecallOutcome(outcome)
        data = state.algorithm_data
        is_hard = outcome is RecallOutcome.HARD

        if data.is_failed:
            if is_hard:
                logger.debug(
                    f"Hard recall inside recovery loop, restarting at {self.recovery_threshold}"
                )
                return self._recovery_step(state, reviewed_at, self.recovery_threshold)

            remaining = data.recalls_remaining or 0
            if remaining > 1:
                return self._recovery_step(state, reviewed_at, remaining - 1)

            logger.debug("Recovery loop closed, grading the lapse as a failure")
            return RescheduleResult(
                state=self._delegate(state, RecallOutcome.HARD, reviewed_at),
                was_successful=False,
            )

        if is_hard:
            logger.debug(f"Lapse, entering recovery loop ({self.recovery_threshold} recalls)")
            return self._recovery_step(state, reviewed_at, self.recovery_threshold)

        return RescheduleResult(
            state=self._delegate(state, outcome, reviewed_at),
            was_successful=True,
        )

    def _recovery_step(
        self, state: SchedulingState, reviewed_at: datetime, recalls_remaining: int
    ) -> RescheduleResult:
        """Keep (or put) the card in the failed state, due again shortly."""
        try:
            next_review_at = reviewed_at + RECOVERY_STEP_DELAY
        except OverflowError as e:
            raise IncompatibleStateError(self.tag, "next review date is out of range") from e

        new_state = replace(
            state,
            next_review_at=next_review_at,
            last_review_at=reviewed_at,
            algorithm_data=replace(
                state.algorithm_data,
                is_failed=True,
                recalls_remaining=recalls_remaining,
            ),
        )
        return RescheduleResult(state=new_state, was_successful=False)

    def _delegate(
        self, state: SchedulingState, outcome: RecallOutcome, reviewed_at: datetime
    ) -> SchedulingState:
        """Run SM-2 on a projection of ``state`` and lift the result back, healthy."""
        data = state.algorithm_data
        projected = SchedulingState(
            algorithm_tag=self._sm2.tag,
            next_review_at=state.next_review_at,
            last_review_at=state.last_review_at,
            algorithm_data=Sm2Data(
                ease_factor=data.ease_factor,
                repetition_count=data.repetition_count,
            ),
        )
        try:
            result = self._sm2.reschedule(projected, outcome, reviewed_at).state
        except IncompatibleStateError as e:
            raise IncompatibleStateError(self.tag, e.detail) from e
        return SchedulingState(
            algorithm_tag=self.tag,
            next_review_at=result.next_review_at,
            last_review_at=result.last_review_at,
            algorithm_data=ModifiedSm2Data(
                ease_factor=result.algorithm_data.ease_factor,
                repetition_count=result.algorithm_data.repetition_count,
                is_failed=False,
                recalls_remaining=0,
            ),
        )

    def is_compatible(self, state: SchedulingState) -> bool:
        data = state.algorithm_data
        if not isinstance(data, ModifiedSm2Data):
            return False

        base = Sm2Data(ease_factor=data.ease_factor, repetition_count=data.repetition_count)
        if not self._sm2.is_compatible(replace(state, algorithm_data=base)):
            return False

        is_failed_valid = data.is_failed is None or isinstance(data.is_failed, bool)
        recalls_valid = data.recalls_remaining is None or is_non_negative_int(
            data.recalls_remaining
        )
        return is_failed_valid and recalls_valid

    def migrate_from(self, state: SchedulingState, source_tag: str) -> SchedulingState | None:
        if tag_value(source_tag) == self.tag:
            if not self.is_compatible(state):
                return None
            return replace(state, algorithm_data=_with_defaults(state.algorithm_data))

        if not isinstance(state.next_review_at, datetime):
            return None

        return SchedulingState(
            algorithm_tag=self.tag,
            next_review_at=state.next_review_at,
            last_review_at=state.last_review_at,
            algorithm_data=ModifiedSm2Data(
                ease_factor=DEFAULT_EASE_FACTOR,
                repetition_count=MIGRATED_REPETITION_COUNT,
                is_failed=False,
                recalls_remaining=0,
            ),
        )

    def serialize(self, state: SchedulingState) -> dict[str, Any]:
        if not self.is_compatible(state):
            raise IncompatibleStateError(self.tag)

        data = _with_defaults(state.algorithm_data)
        return dump_record(
            state,
            {
                "easeFactor": data.ease_factor,
                "repetitionCount": data.repetition_count,
                "isFailed": data.is_failed,
                "recallsRemaining": data.recalls_remaining,
            },
        )

    def deserialize(self, record: dict[str, Any]) -> SchedulingState:
        parsed = load_record(record, self.tag)
        raw = parsed.algorithm_data
        return SchedulingState(
            algorithm_tag=parsed.algorithm_tag,
            next_review_at=parsed.next_review_at,
            last_review_at=parsed.last_review_at,
            algorithm_data=_with_defaults(
                ModifiedSm2Data(
                    ease_factor=raw.get("easeFactor"),
                    repetition_count=raw.get("repetitionCount"),
                    is_failed=raw.get("isFailed"),
                    recalls_remaining=raw.get("recallsRemaining"),
                )
            ),
        )


def _with_defaults(data: ModifiedSm2Data) -> ModifiedSm2Data:
    """Fill absent loop fields: not failed, nothing remaining."""
    return replace(
        data,
        is_failed=False if data.is_failed is None else data.is_failed,
        recalls_remaining=0 if data.recalls_remaining is None else data.recalls_remaining,
    )
