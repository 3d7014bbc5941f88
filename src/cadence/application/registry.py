"""
Scheduler registry: maps algorithm tags to scheduler implementations.

Registration normally happens once at startup while lookups happen on every
review, so writes take a lock and swap in a new mapping while reads go
straight to the current one.
"""

import logging
import threading
from types import MappingProxyType

from cadence.application.scheduling.serialization import tag_value
from cadence.domain.errors import UnsupportedAlgorithmError
from cadence.domain.scheduling.ports import AlgorithmScheduler

logger = logging.getLogger(__name__)


class SchedulerRegistry:
    """
    Tag -> scheduler lookup.

    The registry never picks a scheduler on the caller's behalf: an
    unregistered tag is an error, and migration fallbacks are left to the
    caller.
    """

    def __init__(self, schedulers: list[AlgorithmScheduler] | None = None):
        self._write_lock = threading.Lock()
        self._schedulers: MappingProxyType[str, AlgorithmScheduler] = MappingProxyType({})
        for scheduler in schedulers or []:
            self.register(scheduler)

    def register(self, scheduler: AlgorithmScheduler, *, tag: str | None = None) -> None:
        """
        Register ``scheduler`` under ``tag`` (default: ``scheduler.tag``).

        Registering a tag again replaces the previous implementation.
        """
        key = tag_value(tag if tag is not None else scheduler.tag)
        with self._write_lock:
            if key in self._schedulers:
                logger.info(f"Replacing scheduler for '{key}'")
            updated = dict(self._schedulers)
            updated[key] = scheduler
            self._schedulers = MappingProxyType(updated)

    def resolve(self, tag: str) -> AlgorithmScheduler:
        """
        Raises:
            UnsupportedAlgorithmError: if nothing is registered for ``tag``.
        """
        key = tag_value(tag)
        scheduler = self._schedulers.get(key)
        if scheduler is None:
            raise UnsupportedAlgorithmError(key)
        return scheduler

    def supported_tags(self) -> frozenset[str]:
        return frozenset(self._schedulers)

    def is_supported(self, tag: str) -> bool:
        return tag_value(tag) in self._schedulers
