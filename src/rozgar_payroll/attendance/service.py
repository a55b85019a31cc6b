from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import now_utc, parse_iso_date, require_month
from ..common.validators import require_positive_int
from ..core.enums import AttendanceMark
from ..core.exceptions import NotFoundError, ValidationError
from ..identity.guard import require_owner, require_verified
from ..identity.model import Identity
from ..payroll.calculator.base import PayrollCalculator
from ..payroll.calculator.daily_rate_calculator import DailyRateCalculator
from .model import PERIOD_KEY_SEPARATOR, AttendanceRecord, AttendanceSummary, PeriodKey
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Use case: keep a worker's monthly attendance map and derive payroll figures."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        calculator: Optional[PayrollCalculator] = None,
        clock=now_utc,
    ):
        self._attendance = attendance
        self._calculator = calculator or DailyRateCalculator()
        self._clock = clock

    def period_key(self, identity: Identity, worker_id: str, year: int, month: int) -> PeriodKey:
        year, month = require_month(year, month)
        worker_id = (worker_id or "").strip()
        if not worker_id:
            raise ValidationError("Worker is required")
        # doc_id joins the parts with "_", so ids containing it would collide.
        for label, value in (("Employer", identity.user_id), ("Worker", worker_id)):
            if PERIOD_KEY_SEPARATOR in value:
                raise ValidationError(f"{label} id cannot contain {PERIOD_KEY_SEPARATOR!r}")
        return PeriodKey(employer_id=identity.user_id, worker_id=worker_id, year=year, month=month)

    def get(self, identity: Optional[Identity], worker_id: str, year: int, month: int) -> AttendanceRecord:
        identity = require_verified(identity)
        key = self.period_key(identity, worker_id, year, month)
        record = self._attendance.get(key)
        if not record:
            raise NotFoundError("No attendance recorded for this month")
        return record

    def load_or_create(
        self,
        identity: Optional[Identity],
        *,
        worker_id: str,
        year: int,
        month: int,
        daily_rate: int,
        job_title: str = "",
    ) -> AttendanceRecord:
        identity = require_verified(identity)
        key = self.period_key(identity, worker_id, year, month)

        existing = self._attendance.get(key)
        if existing:
            return existing

        now = self._clock()
        record = AttendanceRecord(
            key=key,
            job_title=(job_title or "").strip(),
            daily_rate=require_positive_int(daily_rate, "Daily rate"),
            attendance={},
            created_at=now,
            updated_at=now,
        )
        stored = self._attendance.create_if_absent(record)
        logger.info("attendance period %s opened (rate=%s)", key.doc_id, stored.daily_rate)
        return stored

    def mark_day(
        self,
        identity: Optional[Identity],
        record: AttendanceRecord,
        day: str | date,
        status: AttendanceMark | str,
        *,
        expected_version: Optional[int] = None,
    ) -> AttendanceRecord:
        identity = require_verified(identity)
        require_owner(identity, record.employer_id, what="attendance record")

        work_date = day if isinstance(day, date) else parse_iso_date(day)
        try:
            mark = AttendanceMark(status)
        except ValueError:
            raise ValidationError("Status must be 'present' or 'absent'")

        if not record.key.contains(work_date):
            raise ValidationError("Date is outside this attendance month")

        now = self._clock()
        today = now.date() if isinstance(now, datetime) else now
        if work_date > today:
            raise ValidationError("Cannot mark attendance for future dates")

        updated = self._attendance.set_day(
            key=record.key,
            day=work_date.strftime("%Y-%m-%d"),
            status=mark,
            updated_at=now,
            expected_version=expected_version,
        )
        logger.info("attendance %s: %s marked %s", record.key.doc_id, work_date, mark.value)
        return updated

    def compute_summary(self, record: AttendanceRecord) -> AttendanceSummary:
        return self._calculator.summarize(record)

    def calendar_markers(self, record: AttendanceRecord) -> dict[str, dict]:
        """Display markers for a calendar widget keyed by ISO date."""

        markers: dict[str, dict] = {
            f"{record.key.year}-{record.key.month:02d}-01": {"status": None, "marker": "period-start"},
        }
        for day, status in sorted(record.attendance.items()):
            if status == AttendanceMark.PRESENT:
                markers[day] = {"status": AttendanceMark.PRESENT.value, "marker": "green"}
            elif status == AttendanceMark.ABSENT:
                markers[day] = {"status": AttendanceMark.ABSENT.value, "marker": "red"}
        return markers
