from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping, Optional

from ..attendance.model import AttendanceSummary, PeriodKey
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_utc, period_label
from ..core.constants import DEFAULT_CURRENCY
from ..core.enums import CaptureState, PaymentMethod, PaymentStatus
from ..core.exceptions import (
    DuplicatePaymentError,
    NotFoundError,
    NothingToPayError,
    PaymentOutcomeUnknownError,
    PaymentRecordingError,
    ReconciliationRequiredError,
    ValidationError,
)
from ..identity.guard import require_owner, require_verified
from ..identity.model import Identity
from .gateway.base import PaymentGateway
from .model import (
    CapturedPayment,
    CaptureResult,
    CustomerInfo,
    GatewayOrder,
    PaymentAttempt,
    PaymentRecord,
    PaymentResult,
)
from .repository import PaymentRepository

logger = logging.getLogger(__name__)


class PaymentService:
    """Use case: settle one attendance period through a payment gateway.

    A period is paid at most once. Before any order is created the period is
    checked for a completed payment and for an attempt whose outcome is still
    unknown; the store's uniqueness on the period key backs the same rule up
    when two sessions race.
    """

    def __init__(
        self,
        payments: PaymentRepository,
        attendance: AttendanceRepository,
        gateways: Mapping[PaymentMethod, PaymentGateway],
        *,
        clock=now_utc,
    ):
        self._payments = payments
        self._attendance = attendance
        self._gateways = dict(gateways)
        self._clock = clock

    def _gateway(self, method: PaymentMethod | str) -> PaymentGateway:
        try:
            method = PaymentMethod(method)
        except ValueError:
            raise ValidationError(f"Unsupported payment method {method!r}")
        gateway = self._gateways.get(method)
        if gateway is None:
            raise ValidationError(f"Payment method {method.value} is not configured")
        return gateway

    def _check_period_open(self, key: PeriodKey) -> None:
        if self._payments.find_for_period(key.doc_id):
            raise DuplicatePaymentError(f"{period_label(key.year, key.month)} has already been paid")
        if self._payments.get_attempt(key.doc_id):
            raise ReconciliationRequiredError(
                "A previous payment for this period has an unknown outcome, reconcile it before paying again"
            )

    def open_order(
        self,
        identity: Optional[Identity],
        summary: AttendanceSummary,
        *,
        method: PaymentMethod | str,
        worker_name: Optional[str] = None,
        employer_name: Optional[str] = None,
        customer: Optional[CustomerInfo] = None,
    ) -> tuple[PaymentAttempt, GatewayOrder]:
        """Validate, run the reconciliation guard and create the gateway order."""

        identity = require_verified(identity)
        key = summary.key
        require_owner(identity, key.employer_id, what="payment")
        if summary.total_amount <= 0:
            raise NothingToPayError("No amount to pay")
        gateway = self._gateway(method)

        if not self._attendance.get(key):
            raise NotFoundError("Attendance period does not exist")
        self._check_period_open(key)

        notes = {
            "employer_id": key.employer_id,
            "worker_id": key.worker_id,
            "job_title": summary.job_title,
            "worker_name": worker_name or "",
        }
        order = gateway.create_order(
            summary.total_amount,
            receipt=f"rcpt_{uuid.uuid4().hex[:20]}",
            notes=notes,
            customer=customer,
        )

        attempt = PaymentAttempt(
            period_key=key.doc_id,
            employer_id=key.employer_id,
            worker_id=key.worker_id,
            method=gateway.method,
            order_id=order.order_id,
            amount=summary.total_amount,
            work_days=summary.work_days,
            daily_rate=summary.daily_rate,
            job_title=summary.job_title,
            work_period=period_label(key.year, key.month),
            opened_at=self._clock(),
            employer_name=employer_name,
            worker_name=worker_name,
        )
        if not self._payments.open_attempt(attempt):
            raise ReconciliationRequiredError("Another payment for this period is already in progress")
        logger.info("payment attempt opened for %s via %s (order %s)", key.doc_id, gateway.method.value, order.order_id)
        return attempt, order

    def initiate(
        self,
        identity: Optional[Identity],
        summary: AttendanceSummary,
        *,
        method: PaymentMethod | str,
        worker_name: Optional[str] = None,
        employer_name: Optional[str] = None,
        customer: Optional[CustomerInfo] = None,
    ) -> PaymentResult:
        """Create an order, capture it through the gateway's checkout and record the payment."""

        identity = require_verified(identity)
        if not self._gateway(method).has_checkout:
            raise ValidationError(
                "This payment method has no server-side checkout, create an order and confirm it instead"
            )

        attempt, order = self.open_order(
            identity,
            summary,
            method=method,
            worker_name=worker_name,
            employer_name=employer_name,
            customer=customer,
        )
        gateway = self._gateway(attempt.method)
        capture = gateway.capture(order, customer or CustomerInfo(worker_name=worker_name))
        return self._settle(attempt, capture)

    def confirm(
        self,
        identity: Optional[Identity],
        key: PeriodKey,
        *,
        order_id: str,
        proof: Mapping[str, Any],
    ) -> PaymentResult:
        """Finish an order whose checkout ran on the client."""

        identity = require_verified(identity)
        require_owner(identity, key.employer_id, what="payment")
        attempt = self._payments.get_attempt(key.doc_id)
        if not attempt or attempt.order_id != order_id:
            raise NotFoundError("No payment in progress for this order")

        gateway = self._gateway(attempt.method)
        capture = gateway.confirm(self._order_for(attempt), proof)
        return self._settle(attempt, capture)

    def reconcile(self, identity: Optional[Identity], key: PeriodKey) -> PaymentResult:
        """Resolve an attempt whose outcome was unknown by asking the gateway."""

        identity = require_verified(identity)
        require_owner(identity, key.employer_id, what="payment")

        attempt = self._payments.get_attempt(key.doc_id)
        existing = self._payments.find_for_period(key.doc_id)
        if existing:
            if attempt:
                self._payments.close_attempt(key.doc_id)
            return PaymentResult(
                success=True,
                state=CaptureState.VERIFIED_SUCCESS,
                order_id=existing.gateway_order_id,
                record=existing,
                message="Payment already recorded",
            )
        if not attempt:
            raise NotFoundError("Nothing to reconcile for this period")

        gateway = self._gateway(attempt.method)
        capture = gateway.fetch_status(self._order_for(attempt))
        return self._settle(attempt, capture)

    def record_captured(self, identity: Optional[Identity], captured: CapturedPayment) -> PaymentResult:
        """Retry writing a payment whose capture already succeeded."""

        identity = require_verified(identity)
        require_owner(identity, captured.attempt.employer_id, what="payment")
        return self._settle(captured.attempt, captured.capture)

    def _order_for(self, attempt: PaymentAttempt) -> GatewayOrder:
        return GatewayOrder(
            method=attempt.method,
            order_id=attempt.order_id,
            amount=attempt.amount,
            currency=DEFAULT_CURRENCY,
            receipt=attempt.order_id,
        )

    def _settle(self, attempt: PaymentAttempt, capture: CaptureResult) -> PaymentResult:
        if capture.state == CaptureState.UNKNOWN:
            logger.error("payment outcome unknown for %s (order %s)", attempt.period_key, attempt.order_id)
            raise PaymentOutcomeUnknownError(capture.message or "Payment is still being processed", order_id=attempt.order_id)

        if not capture.success:
            self._payments.close_attempt(attempt.period_key)
            logger.info("payment for %s not completed: %s", attempt.period_key, capture.state.value)
            return PaymentResult(
                success=False,
                state=capture.state,
                order_id=attempt.order_id,
                message=capture.message or "Payment failed",
            )

        record = self._record(attempt, capture)
        self._payments.close_attempt(attempt.period_key)
        return PaymentResult(
            success=True,
            state=CaptureState.VERIFIED_SUCCESS,
            order_id=attempt.order_id,
            record=record,
            message="Payment completed successfully",
        )

    def _record(self, attempt: PaymentAttempt, capture: CaptureResult) -> PaymentRecord:
        captured = CapturedPayment(attempt=attempt, capture=capture)
        payment_id = capture.payment_id or capture.order_id

        try:
            existing = self._payments.find_for_period(attempt.period_key)
            if existing:
                if existing.gateway_payment_id == payment_id:
                    return existing
                raise DuplicatePaymentError("This work period has already been paid")

            now = self._clock()
            record = PaymentRecord(
                payment_record_id=uuid.uuid4().hex,
                period_key=attempt.period_key,
                employer_id=attempt.employer_id,
                employer_name=attempt.employer_name,
                worker_id=attempt.worker_id,
                worker_name=attempt.worker_name,
                job_title=attempt.job_title,
                amount=attempt.amount,
                work_days=attempt.work_days,
                work_period=attempt.work_period,
                daily_rate=attempt.daily_rate,
                payment_method=attempt.method,
                gateway_payment_id=payment_id,
                gateway_order_id=capture.order_id,
                status=PaymentStatus.COMPLETED,
                paid_at=now,
                created_at=now,
            )
            stored = self._payments.add(record)
        except DuplicatePaymentError as exc:
            logger.error("captured payment %s collides with a recorded payment for %s", payment_id, attempt.period_key)
            raise PaymentRecordingError(
                "Payment was captured but this period is already paid, contact support",
                capture=captured,
            ) from exc
        except Exception as exc:
            logger.error("payment %s captured but could not be recorded for %s", payment_id, attempt.period_key)
            raise PaymentRecordingError(
                "Payment succeeded but record keeping failed, contact support",
                capture=captured,
            ) from exc

        logger.info("payment %s recorded for %s: %s", stored.payment_record_id, attempt.period_key, attempt.amount)
        return stored
