from __future__ import annotations

from ...attendance.model import AttendanceRecord, AttendanceSummary
from ...core.enums import AttendanceMark
from .base import PayrollCalculator


def count_work_days(attendance) -> int:
    """Days marked present. Absent and unrecognized values count as zero."""
    return sum(1 for status in attendance.values() if status == AttendanceMark.PRESENT)


class DailyRateCalculator(PayrollCalculator):
    """Standard rule: present days x daily rate."""

    def summarize(self, record: AttendanceRecord) -> AttendanceSummary:
        work_days = count_work_days(record.attendance)
        daily_rate = int(record.daily_rate)
        return AttendanceSummary(
            key=record.key,
            work_days=work_days,
            daily_rate=daily_rate,
            total_amount=work_days * daily_rate,
            job_title=record.job_title,
        )
