"""Thread-safe registry of schedules and their trigger handles."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from fitcoach.services.schedule_models import ScheduleJob


logger = logging.getLogger(__name__)


class ScheduleHandle(Protocol):
    """Control surface of an armed trigger."""

    def cancel(self) -> None: ...

    def is_active(self) -> bool: ...


@dataclass(frozen=True)
class StoredSchedule:
    job: ScheduleJob
    handle: Optional[ScheduleHandle]


class ScheduleStore:
    """
    Maps schedule ids to ``(job, handle)`` pairs.

    Every operation takes the same lock, so readers never observe a half-written
    entry. ``list_all`` returns a copy; callers may iterate it while other threads
    register or remove schedules.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, StoredSchedule] = {}

    def register(self, job: ScheduleJob, handle: Optional[ScheduleHandle] = None) -> None:
        with self._lock:
            self._entries[job.schedule_id] = StoredSchedule(job=job, handle=handle)
        logger.debug("Stored schedule %s (%s)", job.schedule_id, job.schedule_type.value)

    def get(self, schedule_id: str) -> Optional[ScheduleJob]:
        with self._lock:
            entry = self._entries.get(schedule_id)
        return entry.job if entry else None

    def get_handle(self, schedule_id: str) -> Optional[ScheduleHandle]:
        with self._lock:
            entry = self._entries.get(schedule_id)
        return entry.handle if entry else None

    def remove(self, schedule_id: str) -> Optional[StoredSchedule]:
        with self._lock:
            return self._entries.pop(schedule_id, None)

    def is_active(self, schedule_id: str) -> bool:
        handle = self.get_handle(schedule_id)
        return bool(handle and handle.is_active())

    def list_all(self) -> Dict[str, ScheduleJob]:
        with self._lock:
            return {schedule_id: entry.job for schedule_id, entry in self._entries.items()}

    def __contains__(self, schedule_id: object) -> bool:
        with self._lock:
            return schedule_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
