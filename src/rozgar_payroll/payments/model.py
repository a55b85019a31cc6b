from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import CaptureState, PaymentMethod, PaymentStatus


@dataclass(frozen=True)
class CustomerInfo:
    """Prefill data handed to the gateway checkout."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    worker_name: Optional[str] = None


@dataclass(frozen=True)
class GatewayOrder:
    method: PaymentMethod
    order_id: str
    amount: int
    currency: str
    receipt: str
    status: str = "created"
    redirect_url: Optional[str] = None


@dataclass(frozen=True)
class CaptureResult:
    """Verified outcome reported by a gateway."""

    state: CaptureState
    order_id: str
    payment_id: Optional[str] = None
    message: str = ""
    details: Mapping[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.state == CaptureState.VERIFIED_SUCCESS


@dataclass(frozen=True)
class PaymentAttempt:
    """An order in flight for one period, with the figures it was opened for."""

    period_key: str
    employer_id: str
    worker_id: str
    method: PaymentMethod
    order_id: str
    amount: int
    work_days: int
    daily_rate: int
    job_title: str
    work_period: str
    opened_at: datetime
    employer_name: Optional[str] = None
    worker_name: Optional[str] = None


@dataclass(frozen=True)
class PaymentRecord:
    """Completed payment. Append-only, never updated."""

    payment_record_id: str
    period_key: str
    employer_id: str
    worker_id: str
    job_title: str
    amount: int
    work_days: int
    work_period: str
    daily_rate: int
    payment_method: PaymentMethod
    gateway_payment_id: str
    gateway_order_id: Optional[str]
    status: PaymentStatus
    paid_at: datetime
    created_at: datetime
    employer_name: Optional[str] = None
    worker_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.payment_record_id,
            "periodKey": self.period_key,
            "employerId": self.employer_id,
            "employerName": self.employer_name,
            "workerId": self.worker_id,
            "workerName": self.worker_name,
            "jobTitle": self.job_title,
            "amount": self.amount,
            "workDays": self.work_days,
            "workPeriod": self.work_period,
            "dailyRate": self.daily_rate,
            "paymentMethod": self.payment_method.value,
            "paymentId": self.gateway_payment_id,
            "orderId": self.gateway_order_id,
            "status": self.status.value,
            "paidAt": self.paid_at.isoformat(),
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class CapturedPayment:
    """A verified capture still waiting to be written as a PaymentRecord."""

    attempt: PaymentAttempt
    capture: CaptureResult


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    state: CaptureState
    order_id: Optional[str] = None
    record: Optional[PaymentRecord] = None
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "state": self.state.value,
            "orderId": self.order_id,
            "payment": self.record.to_dict() if self.record else None,
            "message": self.message,
        }
