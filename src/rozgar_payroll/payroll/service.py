from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..attendance.model import PeriodKey
from ..attendance.repository import AttendanceRepository
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..identity.guard import require_verified
from ..identity.model import Identity
from ..payments.model import PaymentRecord
from ..payments.repository import PaymentRepository


@dataclass(frozen=True)
class PaymentHistory:
    payments: list[PaymentRecord]
    total: int


@dataclass(frozen=True)
class AuditIssue:
    payment_record_id: str
    period_key: str
    problem: str


class PayrollReportService:
    """Payment history (paid by an employer / earned by a worker) and period audits."""

    def __init__(self, payments: PaymentRepository, attendance: AttendanceRepository):
        self._payments = payments
        self._attendance = attendance

    def history(
        self,
        identity: Optional[Identity],
        *,
        as_role: Role | str = Role.EMPLOYER,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> PaymentHistory:
        identity = require_verified(identity)
        try:
            role = Role(as_role)
        except ValueError:
            raise ValidationError("History is available as 'employer' or 'worker'")

        if role == Role.EMPLOYER:
            rows = self._payments.list_for_employer(identity.user_id, limit=limit)
        else:
            rows = self._payments.list_for_worker(identity.user_id, limit=limit)

        rows = sorted(rows, key=lambda p: p.paid_at, reverse=True)
        return PaymentHistory(payments=list(rows), total=sum(int(p.amount) for p in rows))

    def audit_employer(self, identity: Optional[Identity], *, limit: int = DEFAULT_HISTORY_LIMIT) -> list[AuditIssue]:
        """Check each payment against the attendance period it settles."""

        identity = require_verified(identity)
        issues: list[AuditIssue] = []
        seen: set[str] = set()

        for p in self._payments.list_for_employer(identity.user_id, limit=limit):
            if p.period_key in seen:
                issues.append(AuditIssue(p.payment_record_id, p.period_key, "period paid more than once"))
                continue
            seen.add(p.period_key)

            key = _period_key_for(p)
            if key is None:
                issues.append(AuditIssue(p.payment_record_id, p.period_key, "payment parties differ from period"))
                continue
            if not self._attendance.get(key):
                issues.append(AuditIssue(p.payment_record_id, p.period_key, "attendance period not found"))
        return issues


def _period_key_for(payment: PaymentRecord) -> Optional[PeriodKey]:
    # Year and month are the last two segments.
    head, _, month = payment.period_key.rpartition("_")
    _, _, year = head.rpartition("_")
    if not (month.isdigit() and year.isdigit()):
        return None
    key = PeriodKey(employer_id=payment.employer_id, worker_id=payment.worker_id, year=int(year), month=int(month))
    return key if key.doc_id == payment.period_key else None
