"""
Domain models for card scheduling.

These are pure data structures with no I/O or external dependencies.
Every model is frozen: a review produces a new state, it never edits one.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class RecallOutcome(str, Enum):
    """How well the learner recalled a card during a single review."""

    HARD = "hard"
    MEDIUM = "medium"
    EASY = "easy"


class AlgorithmTag(str, Enum):
    """
    Known algorithm identifiers.

    SM4 and FSRS are reserved names with no implementation; looking them up
    in a registry fails like any other unregistered tag.
    """

    SM2 = "sm2"
    MODIFIED_SM2 = "modified-sm2"
    SM4 = "sm4"
    FSRS = "fsrs"


@dataclass(frozen=True)
class Sm2Data:
    """
    Algorithm data owned by the SM-2 scheduler.

    Attributes:
        ease_factor: Interval growth multiplier, never below 1.3.
        repetition_count: Consecutive successful reviews.
    """

    ease_factor: float
    repetition_count: int


@dataclass(frozen=True)
class ModifiedSm2Data:
    """
    Algorithm data owned by the modified SM-2 (bounded-failure) scheduler.

    Attributes:
        ease_factor: Interval growth multiplier, never below 1.3.
        repetition_count: Consecutive successful reviews.
        is_failed: Whether the card is inside a recovery loop. None means absent (False).
        recalls_remaining: Non-hard recalls still needed to close the loop.
            None means absent (0).
    """

    ease_factor: float
    repetition_count: int
    is_failed: bool | None = False
    recalls_remaining: int | None = 0


@dataclass(frozen=True)
class SchedulingState:
    """
    Scheduling state for one card.

    Attributes:
        algorithm_tag: Tag of the scheduler that owns ``algorithm_data``.
        next_review_at: The card is due once the clock reaches this time.
        last_review_at: Time of the last review, None for a card never reviewed.
        algorithm_data: Algorithm specific record, only interpretable by the
            scheduler matching ``algorithm_tag``.
    """

    algorithm_tag: str
    next_review_at: datetime
    last_review_at: datetime | None
    algorithm_data: Any

    @property
    def is_new(self) -> bool:
        return self.last_review_at is None


@dataclass(frozen=True)
class ReviewEvent:
    """A single review: the reported outcome and when it happened."""

    outcome: RecallOutcome
    reviewed_at: datetime


@dataclass(frozen=True)
class RescheduleResult:
    """
    Result of rescheduling a card.

    Attributes:
        state: The replacement scheduling state.
        was_successful: Whether the review counted as a success for the algorithm.
    """

    state: SchedulingState
    was_successful: bool
