"""
Scheduler Registry Factory
Centralizes which algorithms are available and how they are configured.
"""

from cadence.application.config import AppConfig
from cadence.application.registry import SchedulerRegistry
from cadence.application.review_service import ReviewService
from cadence.application.scheduling import ModifiedSm2Scheduler, Sm2Scheduler


def build_registry(config: AppConfig) -> SchedulerRegistry:
    """
    Returns a registry holding every implemented algorithm.
    """
    return SchedulerRegistry(
        [
            Sm2Scheduler(),
            ModifiedSm2Scheduler(recovery_threshold=config.recovery_threshold),
        ]
    )


def build_review_service(config: AppConfig) -> ReviewService:
    return ReviewService(
        registry=build_registry(config),
        default_algorithm=config.default_algorithm,
    )
