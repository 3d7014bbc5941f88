"""
Record envelope shared by every scheduler's serialize/deserialize.

The envelope (tag and timestamps) is validated with pydantic. The
``algorithmData`` payload stays a plain dict: only the owning scheduler
knows its shape.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer

from cadence.domain.errors import IncompatibleStateError
from cadence.domain.scheduling.models import SchedulingState


class SchedulingRecord(BaseModel):
    """Persisted shape of a scheduling state."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    algorithm_tag: str = Field(alias="algorithmTag")
    next_review_at: datetime = Field(alias="nextReviewAt")
    last_review_at: datetime | None = Field(default=None, alias="lastReviewAt")
    algorithm_data: dict[str, Any] = Field(default_factory=dict, alias="algorithmData")

    @field_serializer("next_review_at", "last_review_at")
    def _iso(self, value: datetime | None) -> str | None:
        if value is None:
            return None
        return _as_utc(value).isoformat()


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken to be UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def tag_value(tag: str) -> str:
    """Plain string form of a tag, unwrapping AlgorithmTag members."""
    return tag.value if isinstance(tag, Enum) else tag


def dump_record(state: SchedulingState, algorithm_data: dict[str, Any]) -> dict[str, Any]:
    record = SchedulingRecord(
        algorithm_tag=tag_value(state.algorithm_tag),
        next_review_at=state.next_review_at,
        last_review_at=state.last_review_at,
        algorithm_data=algorithm_data,
    )
    return record.model_dump(by_alias=True)


def load_record(record: dict[str, Any], expected_tag: str) -> SchedulingRecord:
    """
    Validate a persisted record envelope.

    Raises:
        IncompatibleStateError: if the envelope is malformed.
    """
    try:
        parsed = SchedulingRecord.model_validate(record)
    except ValidationError as e:
        raise IncompatibleStateError(expected_tag, f"malformed record: {e}") from e

    return parsed.model_copy(
        update={
            "next_review_at": _as_utc(parsed.next_review_at),
            "last_review_at": _as_utc(parsed.last_review_at) if parsed.last_review_at else None,
        }
    )
