# Domain Scheduling Package
from .models import (
    AlgorithmTag,
    ModifiedSm2Data,
    RecallOutcome,
    RescheduleResult,
    ReviewEvent,
    SchedulingState,
    Sm2Data,
)
from .ports import AlgorithmScheduler

__all__ = [
    "AlgorithmTag",
    "RecallOutcome",
    "SchedulingState",
    "Sm2Data",
    "ModifiedSm2Data",
    "ReviewEvent",
    "RescheduleResult",
    "AlgorithmScheduler",
]
