"""
Ports (interfaces) for scheduling algorithms.

These define the contract every algorithm implementation must honor.
Application services depend on this abstraction, never on a concrete scheduler.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from .models import RecallOutcome, RescheduleResult, SchedulingState


class AlgorithmScheduler(ABC):
    """
    Port for a spaced-repetition algorithm.

    Implementations must be pure: the output depends only on the arguments
    and the configuration fixed at construction time, so a single instance
    can be shared between threads.

    Implementations:
        - Sm2Scheduler: classic ease-factor algorithm.
        - ModifiedSm2Scheduler: SM-2 plus a bounded-failure recovery loop.
    """

    @property
    @abstractmethod
    def tag(self) -> str:
        """The algorithm tag this scheduler owns."""

    @abstractmethod
    def initialize(self, now: datetime | None = None) -> SchedulingState:
        """
        Create the scheduling state for a brand-new card.

        Args:
            now: Creation time. Defaults to the current UTC time.

        Returns:
            A state with ``last_review_at`` set to None.
        """

    @abstractmethod
    def reschedule(
        self, state: SchedulingState, outcome: RecallOutcome, reviewed_at: datetime
    ) -> RescheduleResult:
        """
        Apply one review to a state.

        Raises:
            IncompatibleStateError: if ``state`` fails ``is_compatible``.
        """

    @abstractmethod
    def is_compatible(self, state: SchedulingState) -> bool:
        """Check the structure and ranges of ``state.algorithm_data``."""

    @abstractmethod
    def migrate_from(self, state: SchedulingState, source_tag: str) -> SchedulingState | None:
        """
        Convert a state produced by ``source_tag`` into this algorithm's shape.

        Returns:
            The converted state, or None when the conversion is not possible.
        """

    @abstractmethod
    def serialize(self, state: SchedulingState) -> dict[str, Any]:
        """Convert a state to a plain, storage-agnostic record."""

    @abstractmethod
    def deserialize(self, record: dict[str, Any]) -> SchedulingState:
        """Rebuild a state from a record produced by ``serialize``."""
