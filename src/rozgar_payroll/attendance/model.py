from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Mapping

from ..core.enums import AttendanceMark

PERIOD_KEY_SEPARATOR = "_"


@dataclass(frozen=True)
class PeriodKey:
    """One payroll cycle: (employer, worker, year, month)."""

    employer_id: str
    worker_id: str
    year: int
    month: int

    @property
    def doc_id(self) -> str:
        return PERIOD_KEY_SEPARATOR.join((self.employer_id, self.worker_id, str(self.year), str(self.month)))

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one worker's attendance map for one employer and month."""

    key: PeriodKey
    job_title: str
    daily_rate: int
    attendance: Mapping[str, AttendanceMark] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    version: int = 0

    @property
    def employer_id(self) -> str:
        return self.key.employer_id

    @property
    def worker_id(self) -> str:
        return self.key.worker_id


@dataclass(frozen=True)
class AttendanceSummary:
    key: PeriodKey
    work_days: int
    daily_rate: int
    total_amount: int
    job_title: str = ""

    @property
    def payable(self) -> bool:
        return self.total_amount > 0
