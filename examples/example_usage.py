"""Example: drive the service layer directly (no Flask).

Uses the in-memory stores and a checkout bridge that approves every payment.
"""

import hashlib
import hmac
from datetime import datetime, timezone

from rozgar_payroll.attendance.memory_attendance_repository import InMemoryAttendanceRepository
from rozgar_payroll.attendance.service import AttendanceService
from rozgar_payroll.core.enums import PaymentMethod
from rozgar_payroll.identity.model import Identity
from rozgar_payroll.payments.memory_payment_repository import InMemoryPaymentRepository
from rozgar_payroll.payments.service import PaymentService
from rozgar_payroll.relay.app import create_relay_app
from rozgar_payroll.payments.gateway.razorpay_gateway import RazorpayRelayGateway

SECRET = "demo-secret"


class DemoRazorpay:
    """Stands in for api.razorpay.com behind the relay."""

    def create_order(self, *, amount, currency, receipt, notes):
        return {"id": "order_demo", "amount": amount, "currency": currency, "receipt": receipt, "status": "created"}

    def fetch_payment(self, payment_id):
        return {"id": payment_id, "status": "captured", "method": "upi"}

    def order_payments(self, order_id):
        return []


class RelaySession:
    """Routes the gateway's HTTP calls into the relay app's test client."""

    def __init__(self, client):
        self._client = client

    def post(self, url, json=None, timeout=None):
        return _Resp(self._client.post(url.replace("http://relay", ""), json=json))

    def get(self, url, timeout=None):
        return _Resp(self._client.get(url.replace("http://relay", "")))


class _Resp:
    def __init__(self, r):
        self.status_code = r.status_code
        self._data = r.get_json()

    def json(self):
        return self._data


def approve(order, customer):
    payment_id = "pay_demo"
    signature = hmac.new(SECRET.encode(), f"{order.order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()
    return {"payment_id": payment_id, "signature": signature}


def main():
    relay = create_relay_app(DemoRazorpay(), key_secret=SECRET).test_client()
    gateway = RazorpayRelayGateway("http://relay", session=RelaySession(relay), checkout=approve)

    attendance_repo = InMemoryAttendanceRepository()
    attendance = AttendanceService(attendance_repo, clock=lambda: datetime(2025, 1, 31, tzinfo=timezone.utc))
    payments = PaymentService(InMemoryPaymentRepository(), attendance_repo, {PaymentMethod.RAZORPAY: gateway})

    employer = Identity(user_id="emp-1", email_verified=True)
    record = attendance.load_or_create(employer, worker_id="wrk-1", year=2025, month=1, daily_rate=500, job_title="Mason")
    for day, status in (("2025-01-03", "present"), ("2025-01-04", "present"), ("2025-01-05", "absent")):
        record = attendance.mark_day(employer, record, day, status)

    summary = attendance.compute_summary(record)
    print(f"{summary.work_days} days, total {summary.total_amount}")

    result = payments.initiate(employer, summary, method=PaymentMethod.RAZORPAY, worker_name="Ravi")
    print(result.to_dict())


if __name__ == "__main__":
    main()
