from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceMark
from ..core.exceptions import ConcurrentUpdateError, NotFoundError
from .model import AttendanceRecord, PeriodKey
from .repository import AttendanceRepository


class InMemoryAttendanceRepository(AttendanceRepository):
    """Process-local store, used by tests and the `memory` backend."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: dict[str, AttendanceRecord] = {}

    def get(self, key: PeriodKey) -> Optional[AttendanceRecord]:
        with self._lock:
            return self._records.get(key.doc_id)

    def create_if_absent(self, record: AttendanceRecord) -> AttendanceRecord:
        with self._lock:
            existing = self._records.get(record.key.doc_id)
            if existing:
                return existing
            stored = replace(record, attendance=dict(record.attendance), version=1)
            self._records[record.key.doc_id] = stored
            return stored

    def set_day(
        self,
        *,
        key: PeriodKey,
        day: str,
        status: AttendanceMark,
        updated_at: datetime,
        expected_version: Optional[int] = None,
    ) -> AttendanceRecord:
        with self._lock:
            current = self._records.get(key.doc_id)
            if not current:
                raise NotFoundError("Attendance period does not exist")
            if expected_version is not None and current.version != int(expected_version):
                raise ConcurrentUpdateError("Attendance was changed by someone else, reload and try again")

            attendance = dict(current.attendance)
            attendance[day] = status
            updated = replace(current, attendance=attendance, updated_at=updated_at, version=current.version + 1)
            self._records[key.doc_id] = updated
            return updated
