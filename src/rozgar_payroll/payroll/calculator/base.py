from __future__ import annotations

from abc import ABC, abstractmethod

from ...attendance.model import AttendanceRecord, AttendanceSummary


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def summarize(self, record: AttendanceRecord) -> AttendanceSummary:
        raise NotImplementedError
