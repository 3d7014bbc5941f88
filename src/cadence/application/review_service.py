"""
Review Service: application layer orchestrator.

Sits between callers (request handlers, storage, the CLI) and the
schedulers: translates response labels, resolves the scheduler owning a
state, enforces compatibility and decides migration fallbacks.
"""

import logging
from datetime import datetime
from typing import Any

from cadence.application.registry import SchedulerRegistry
from cadence.application.scheduling.serialization import tag_value
from cadence.application.scheduling.utils import utc_now
from cadence.domain.errors import IncompatibleStateError, InvalidReviewResponseError
from cadence.domain.scheduling.models import (
    RecallOutcome,
    RescheduleResult,
    ReviewEvent,
    SchedulingState,
)
from cadence.domain.scheduling.ports import AlgorithmScheduler

logger = logging.getLogger(__name__)

RESPONSE_LABELS: dict[str, RecallOutcome] = {
    "failed": RecallOutcome.HARD,
    "again": RecallOutcome.HARD,
    "hard": RecallOutcome.HARD,
    "good": RecallOutcome.MEDIUM,
    "easy": RecallOutcome.EASY,
}


class ReviewService:
    """
    Application service for creating, reviewing and migrating scheduling states.

    Follows Dependency Inversion: works with any AlgorithmScheduler found in
    the registry, never with a concrete algorithm.
    """

    def __init__(self, registry: SchedulerRegistry, default_algorithm: str):
        """
        Args:
            registry: Tag -> scheduler lookup.
            default_algorithm: Tag used when a new card names no algorithm.
        """
        self._registry = registry
        self.default_algorithm = tag_value(default_algorithm)

    @property
    def registry(self) -> SchedulerRegistry:
        return self._registry

    @staticmethod
    def parse_response(label: str) -> RecallOutcome:
        """
        Map an external response label onto a RecallOutcome.

        Raises:
            InvalidReviewResponseError: for an unrecognized label.
        """
        outcome = RESPONSE_LABELS.get(str(label).strip().lower())
        if outcome is None:
            raise InvalidReviewResponseError(label, tuple(RESPONSE_LABELS))
        return outcome

    def create_state(
        self, tag: str | None = None, now: datetime | None = None
    ) -> SchedulingState:
        scheduler = self._registry.resolve(tag or self.default_algorithm)
        return scheduler.initialize(now)

    def review(
        self,
        state: SchedulingState,
        response: str | RecallOutcome,
        reviewed_at: datetime | None = None,
    ) -> RescheduleResult:
        """
        Apply one review to ``state`` with the scheduler that owns it.

        Args:
            state: Current scheduling state.
            response: A RecallOutcome or an external label ("failed", "good", "easy").
            reviewed_at: Review time. Defaults to now.

        Raises:
            UnsupportedAlgorithmError: if the state's algorithm is not registered.
            IncompatibleStateError: if the state's data does not fit its algorithm.
        """
        if isinstance(response, RecallOutcome):
            outcome = response
        else:
            outcome = self.parse_response(response)
        event = ReviewEvent(outcome=outcome, reviewed_at=reviewed_at or utc_now())

        scheduler = self._owning_scheduler(state)
        result = scheduler.reschedule(state, event.outcome, event.reviewed_at)

        logger.info(
            f"Reviewed card ({scheduler.tag}) as {event.outcome.value}: "
            f"success={result.was_successful}, "
            f"next review {result.state.next_review_at.isoformat()}"
        )
        return result

    def change_algorithm(
        self,
        state: SchedulingState,
        target_tag: str,
        fallback_to_initialize: bool = False,
        now: datetime | None = None,
    ) -> SchedulingState | None:
        """
        Move ``state`` to another algorithm.

        Returns:
            The migrated state. When migration is not possible: a fresh state
            if ``fallback_to_initialize`` is set, otherwise None.
        """
        target = self._registry.resolve(target_tag)
        migrated = target.migrate_from(state, state.algorithm_tag)
        if migrated is not None:
            logger.info(f"Migrated card from '{tag_value(state.algorithm_tag)}' to '{target.tag}'")
            return migrated

        logger.warning(
            f"Cannot migrate card from '{tag_value(state.algorithm_tag)}' to '{target.tag}'"
        )
        if fallback_to_initialize:
            logger.info(f"Re-initializing card under '{target.tag}'")
            return target.initialize(now)
        return None

    def load(self, record: dict[str, Any], check_compatible: bool = True) -> SchedulingState:
        """
        Rebuild a persisted state and check it against its algorithm.

        Args:
            record: Plain record as produced by ``dump``.
            check_compatible: Reject algorithm data its scheduler cannot use.
                Turn off before ``change_algorithm``, which decides for itself.

        Raises:
            UnsupportedAlgorithmError: if the record's algorithm is not registered.
            IncompatibleStateError: if the record is malformed or its data incompatible.
        """
        tag = record.get("algorithmTag") if isinstance(record, dict) else None
        if not isinstance(tag, str):
            raise IncompatibleStateError(str(tag), "record has no algorithmTag")

        scheduler = self._registry.resolve(tag)
        state = scheduler.deserialize(record)
        if check_compatible and not scheduler.is_compatible(state):
            raise IncompatibleStateError(scheduler.tag)
        return state

    def dump(self, state: SchedulingState) -> dict[str, Any]:
        return self._owning_scheduler(state).serialize(state)

    def _owning_scheduler(self, state: SchedulingState) -> AlgorithmScheduler:
        scheduler = self._registry.resolve(state.algorithm_tag)
        if not scheduler.is_compatible(state):
            raise IncompatibleStateError(scheduler.tag)
        return scheduler
