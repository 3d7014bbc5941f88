"""
Error taxonomy for the scheduling engine.

Every error is synchronous and local; nothing here is worth retrying.
A migration that is not possible is NOT an error: ``migrate_from`` returns
``None`` for that case.
"""


class SchedulingError(Exception):
    """Base class for scheduling engine errors."""


class IncompatibleStateError(SchedulingError, ValueError):
    """Raised when algorithm data fails a scheduler's compatibility check."""

    def __init__(self, tag: str, detail: str = "algorithm data is not compatible"):
        self.tag = tag
        self.detail = detail
        super().__init__(f"Incompatible scheduling state for '{tag}': {detail}")


class UnsupportedAlgorithmError(SchedulingError, LookupError):
    """Raised when no scheduler is registered for an algorithm tag."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"Algorithm '{tag}' is not supported")


class InvalidReviewResponseError(SchedulingError, ValueError):
    """Raised when a review response label has no recall outcome."""

    def __init__(self, label: str, accepted: tuple[str, ...]):
        self.label = label
        super().__init__(
            f"Unknown review response '{label}'. Expected one of: {', '.join(accepted)}"
        )
