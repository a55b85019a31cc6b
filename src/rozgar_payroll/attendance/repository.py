from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import AttendanceMark
from .model import AttendanceRecord, PeriodKey


class AttendanceRepository(Protocol):
    def get(self, key: PeriodKey) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_if_absent(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert the record unless one exists; return whichever is stored."""

        raise NotImplementedError

    def set_day(
        self,
        *,
        key: PeriodKey,
        day: str,
        status: AttendanceMark,
        updated_at: datetime,
        expected_version: Optional[int] = None,
    ) -> AttendanceRecord:
        """Patch a single date in the attendance map and bump the version.

        Other dates are never rewritten. Raises ConcurrentUpdateError when
        expected_version is given and does not match the stored version, and
        NotFoundError when the period does not exist.
        """

        raise NotImplementedError
