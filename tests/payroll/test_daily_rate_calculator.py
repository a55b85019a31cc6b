from datetime import datetime, timezone

import pytest

from rozgar_payroll.attendance.model import AttendanceRecord, PeriodKey
from rozgar_payroll.core.enums import AttendanceMark
from rozgar_payroll.payroll.calculator.daily_rate_calculator import DailyRateCalculator, count_work_days

KEY = PeriodKey(employer_id="emp-1", worker_id="wrk-1", year=2025, month=1)


def _record(attendance, daily_rate=500):
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return AttendanceRecord(
        key=KEY,
        job_title="Mason",
        daily_rate=daily_rate,
        attendance=attendance,
        created_at=now,
        updated_at=now,
    )


def test_empty_map_has_nothing_to_pay():
    summary = DailyRateCalculator().summarize(_record({}))

    assert summary.work_days == 0
    assert summary.total_amount == 0
    assert not summary.payable


def test_only_present_days_count():
    attendance = {
        "2025-01-01": AttendanceMark.PRESENT,
        "2025-01-02": AttendanceMark.ABSENT,
        "2025-01-03": "present",
        "2025-01-04": "holiday",
    }

    assert count_work_days(attendance) == 2


@pytest.mark.parametrize("present_days", [1, 2, 7, 31])
@pytest.mark.parametrize("daily_rate", [1, 350, 500])
def test_total_is_work_days_times_rate(present_days, daily_rate):
    attendance = {f"2025-01-{d:02d}": AttendanceMark.PRESENT for d in range(1, present_days + 1)}

    summary = DailyRateCalculator().summarize(_record(attendance, daily_rate))

    assert summary.work_days == present_days
    assert summary.total_amount == present_days * daily_rate
    assert summary.daily_rate == daily_rate
    assert summary.job_title == "Mason"
