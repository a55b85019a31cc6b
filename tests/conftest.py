from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import pytest

from rozgar_payroll.attendance.memory_attendance_repository import InMemoryAttendanceRepository
from rozgar_payroll.attendance.service import AttendanceService
from rozgar_payroll.core.enums import CaptureState, PaymentMethod
from rozgar_payroll.identity.model import Identity
from rozgar_payroll.payments.gateway.base import PaymentGateway
from rozgar_payroll.payments.memory_payment_repository import InMemoryPaymentRepository
from rozgar_payroll.payments.model import CaptureResult, GatewayOrder
from rozgar_payroll.payments.service import PaymentService


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeGateway(PaymentGateway):
    """Records calls; capture/status outcomes are set by the test."""

    method = PaymentMethod.RAZORPAY

    def __init__(self, *, method: PaymentMethod = PaymentMethod.RAZORPAY, checkout=lambda order, customer: {}):
        super().__init__(checkout=checkout)
        self.method = method
        self.orders: list[GatewayOrder] = []
        self.capture_calls = 0
        self.status_calls = 0
        self.capture_state = CaptureState.VERIFIED_SUCCESS
        self.capture_error: Optional[Exception] = None
        self.status_state = CaptureState.VERIFIED_SUCCESS

    def create_order(self, amount, *, receipt, notes=None, customer=None):
        order = GatewayOrder(
            method=self.method,
            order_id=f"order_{len(self.orders) + 1}",
            amount=amount,
            currency="INR",
            receipt=receipt,
        )
        self.orders.append(order)
        return order

    def _result(self, order, state):
        return CaptureResult(
            state=state,
            order_id=order.order_id,
            payment_id=f"pay_{order.order_id}" if state == CaptureState.VERIFIED_SUCCESS else None,
        )

    def capture(self, order, customer):
        self.capture_calls += 1
        if self.capture_error:
            raise self.capture_error
        return self._result(order, self.capture_state)

    def confirm(self, order, proof):
        self.capture_calls += 1
        state = CaptureState.VERIFIED_SUCCESS if proof.get("payment_id") else CaptureState.VERIFIED_FAILURE
        return self._result(order, state)

    def fetch_status(self, order):
        self.status_calls += 1
        return self._result(order, self.status_state)

    def verify_callback(self, payload):
        return True


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 1, 20, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def employer():
    return Identity(user_id="emp-1", email_verified=True, email="owner@example.com")


@pytest.fixture
def attendance_repo():
    return InMemoryAttendanceRepository()


@pytest.fixture
def payments_repo():
    return InMemoryPaymentRepository()


@pytest.fixture
def attendance_service(attendance_repo, clock):
    return AttendanceService(attendance_repo, clock=clock)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def payment_service(payments_repo, attendance_repo, gateway, clock):
    return PaymentService(payments_repo, attendance_repo, {PaymentMethod.RAZORPAY: gateway}, clock=clock)
