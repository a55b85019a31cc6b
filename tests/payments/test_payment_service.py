from dataclasses import replace

import pytest

from rozgar_payroll.core.enums import AttendanceMark, CaptureState, PaymentMethod, PaymentStatus
from rozgar_payroll.core.exceptions import (
    AuthorizationError,
    DuplicatePaymentError,
    NotFoundError,
    NothingToPayError,
    PaymentOutcomeUnknownError,
    PaymentRecordingError,
    ReconciliationRequiredError,
    TransientError,
    ValidationError,
    VerificationRequiredError,
)
from rozgar_payroll.identity.model import Identity
from rozgar_payroll.payments.gateway.razorpay_gateway import RazorpayRelayGateway
from rozgar_payroll.payments.memory_payment_repository import InMemoryPaymentRepository
from rozgar_payroll.payments.service import PaymentService


class FlakyPaymentRepository(InMemoryPaymentRepository):
    """Fails the next `fail_adds` writes as if the store were down."""

    def __init__(self):
        super().__init__()
        self.fail_adds = 0

    def add(self, record):
        if self.fail_adds:
            self.fail_adds -= 1
            raise TransientError("store unavailable")
        return super().add(record)


class RacingPaymentRepository(InMemoryPaymentRepository):
    """Lets a rival session open its attempt right after ours passed the guard."""

    def __init__(self):
        super().__init__()
        self.rival_order_id = None

    def open_attempt(self, attempt):
        if self.rival_order_id:
            super().open_attempt(replace(attempt, order_id=self.rival_order_id))
            self.rival_order_id = None
        return super().open_attempt(attempt)


class StaleReadPaymentRepository(InMemoryPaymentRepository):
    """Reads miss records written by another session; the unique period key still holds."""

    def find_for_period(self, period_key):
        return None


class RecordingSession:
    def __init__(self):
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append(url)
        raise AssertionError("no HTTP call expected")

    get = post


def _period(attendance_service, employer, days=("2025-01-02", "2025-01-03")):
    record = attendance_service.load_or_create(
        employer, worker_id="wrk-1", year=2025, month=1, daily_rate=500, job_title="Mason"
    )
    for day in days:
        record = attendance_service.mark_day(employer, record, day, "present")
    return record


def _summary(attendance_service, employer, **kw):
    return attendance_service.compute_summary(_period(attendance_service, employer, **kw))


def test_successful_payment_recorded_once(attendance_service, payment_service, payments_repo, employer, gateway):
    summary = _summary(attendance_service, employer)

    result = payment_service.initiate(employer, summary, method="razorpay", worker_name="Ravi")

    assert result.success
    record = result.record
    assert record.amount == 1000
    assert record.work_days == 2
    assert record.daily_rate == 500
    assert record.work_period == "January 2025"
    assert record.status == PaymentStatus.COMPLETED
    assert record.payment_method == PaymentMethod.RAZORPAY
    assert record.gateway_payment_id == "pay_order_1"
    assert record.worker_name == "Ravi"
    assert payments_repo.find_for_period(summary.key.doc_id) == record
    assert payments_repo.get_attempt(summary.key.doc_id) is None
    assert len(gateway.orders) == 1
    assert gateway.orders[0].amount == 1000


def test_attendance_is_kept_after_payment(attendance_service, payment_service, attendance_repo, employer):
    summary = _summary(attendance_service, employer)

    payment_service.initiate(employer, summary, method="razorpay")

    assert attendance_repo.get(summary.key).attendance == {
        "2025-01-02": AttendanceMark.PRESENT,
        "2025-01-03": AttendanceMark.PRESENT,
    }


def test_second_payment_for_same_period_refused(attendance_service, payment_service, payments_repo, employer, gateway):
    summary = _summary(attendance_service, employer)
    payment_service.initiate(employer, summary, method="razorpay")

    with pytest.raises(DuplicatePaymentError):
        payment_service.initiate(employer, summary, method="razorpay")

    assert len(gateway.orders) == 1
    assert len(payments_repo.list_for_employer("emp-1")) == 1


def test_zero_total_rejected_without_gateway_call(attendance_service, payment_service, employer, gateway):
    summary = _summary(attendance_service, employer, days=())

    with pytest.raises(NothingToPayError):
        payment_service.initiate(employer, summary, method="razorpay")

    assert gateway.orders == []
    assert gateway.capture_calls == 0


def test_unverified_payer_rejected_without_gateway_call(attendance_service, payment_service, employer, gateway):
    summary = _summary(attendance_service, employer)
    unverified = Identity(user_id="emp-1", email_verified=False)

    with pytest.raises(VerificationRequiredError):
        payment_service.initiate(unverified, summary, method="razorpay")

    assert gateway.orders == []


def test_other_employer_cannot_pay(attendance_service, payment_service, employer, gateway):
    summary = _summary(attendance_service, employer)

    with pytest.raises(AuthorizationError):
        payment_service.initiate(Identity(user_id="emp-2", email_verified=True), summary, method="razorpay")

    assert gateway.orders == []


def test_unconfigured_method_rejected(attendance_service, payment_service, employer):
    summary = _summary(attendance_service, employer)

    with pytest.raises(ValidationError):
        payment_service.initiate(employer, summary, method="phonepe")
    with pytest.raises(ValidationError):
        payment_service.initiate(employer, summary, method="cash")


@pytest.mark.parametrize("state", [CaptureState.VERIFIED_FAILURE, CaptureState.CANCELLED])
def test_failed_or_cancelled_capture_writes_nothing(
    attendance_service, payment_service, payments_repo, attendance_repo, employer, gateway, state
):
    summary = _summary(attendance_service, employer)
    before = attendance_repo.get(summary.key)
    gateway.capture_state = state

    result = payment_service.initiate(employer, summary, method="razorpay")

    assert not result.success
    assert result.state == state
    assert payments_repo.find_for_period(summary.key.doc_id) is None
    assert payments_repo.get_attempt(summary.key.doc_id) is None
    assert attendance_repo.get(summary.key) == before

    gateway.capture_state = CaptureState.VERIFIED_SUCCESS
    assert payment_service.initiate(employer, summary, method="razorpay").success


def test_unknown_outcome_blocks_retry_until_reconciled(attendance_service, payment_service, payments_repo, employer, gateway):
    summary = _summary(attendance_service, employer)
    gateway.capture_error = PaymentOutcomeUnknownError("timed out", order_id="order_1")

    with pytest.raises(PaymentOutcomeUnknownError):
        payment_service.initiate(employer, summary, method="razorpay")

    assert payments_repo.get_attempt(summary.key.doc_id).order_id == "order_1"

    gateway.capture_error = None
    with pytest.raises(ReconciliationRequiredError):
        payment_service.initiate(employer, summary, method="razorpay")
    assert len(gateway.orders) == 1

    result = payment_service.reconcile(employer, summary.key)

    assert result.success
    assert result.record.amount == 1000
    assert result.record.gateway_order_id == "order_1"
    assert payments_repo.get_attempt(summary.key.doc_id) is None
    with pytest.raises(DuplicatePaymentError):
        payment_service.initiate(employer, summary, method="razorpay")


def test_unknown_capture_state_leaves_attempt_open(attendance_service, payment_service, payments_repo, employer, gateway):
    summary = _summary(attendance_service, employer)
    gateway.capture_state = CaptureState.UNKNOWN

    with pytest.raises(PaymentOutcomeUnknownError) as exc:
        payment_service.initiate(employer, summary, method="razorpay")

    assert exc.value.order_id == "order_1"
    assert payments_repo.get_attempt(summary.key.doc_id) is not None


def test_reconcile_failure_closes_attempt(attendance_service, payment_service, payments_repo, employer, gateway):
    summary = _summary(attendance_service, employer)
    gateway.capture_state = CaptureState.UNKNOWN
    with pytest.raises(PaymentOutcomeUnknownError):
        payment_service.initiate(employer, summary, method="razorpay")

    gateway.status_state = CaptureState.UNKNOWN
    with pytest.raises(PaymentOutcomeUnknownError):
        payment_service.reconcile(employer, summary.key)
    assert payments_repo.get_attempt(summary.key.doc_id) is not None

    gateway.status_state = CaptureState.VERIFIED_FAILURE
    result = payment_service.reconcile(employer, summary.key)

    assert not result.success
    assert payments_repo.get_attempt(summary.key.doc_id) is None
    assert payments_repo.find_for_period(summary.key.doc_id) is None


def test_reconcile_without_attempt(attendance_service, payment_service, employer):
    summary = _summary(attendance_service, employer)

    with pytest.raises(NotFoundError):
        payment_service.reconcile(employer, summary.key)


def test_recording_failure_keeps_capture_for_retry(attendance_service, attendance_repo, clock, employer, gateway):
    payments_repo = FlakyPaymentRepository()
    service = PaymentService(payments_repo, attendance_repo, {PaymentMethod.RAZORPAY: gateway}, clock=clock)
    summary = _summary(attendance_service, employer)
    payments_repo.fail_adds = 1

    with pytest.raises(PaymentRecordingError) as exc:
        service.initiate(employer, summary, method="razorpay")

    captured = exc.value.capture
    assert captured.capture.payment_id == "pay_order_1"
    assert payments_repo.find_for_period(summary.key.doc_id) is None
    with pytest.raises(ReconciliationRequiredError):
        service.initiate(employer, summary, method="razorpay")

    result = service.record_captured(employer, captured)

    assert result.success
    assert result.record.gateway_payment_id == "pay_order_1"
    assert gateway.capture_calls == 1

    again = service.record_captured(employer, captured)
    assert again.record == result.record


def test_client_side_checkout_confirm(attendance_service, payment_service, payments_repo, employer, gateway):
    summary = _summary(attendance_service, employer)
    attempt, order = payment_service.open_order(employer, summary, method="razorpay")

    assert attempt.amount == 1000
    assert payments_repo.get_attempt(summary.key.doc_id) == attempt

    with pytest.raises(NotFoundError):
        payment_service.confirm(employer, summary.key, order_id="order_other", proof={"payment_id": "pay_x"})

    result = payment_service.confirm(employer, summary.key, order_id=order.order_id, proof={"payment_id": "pay_x"})

    assert result.success
    assert payments_repo.find_for_period(summary.key.doc_id).amount == 1000


def test_two_present_days_and_one_absent_settle_as_one_record(attendance_service, payment_service, payments_repo, employer):
    record = attendance_service.load_or_create(
        employer, worker_id="wrk-1", year=2025, month=1, daily_rate=500, job_title="Mason"
    )
    for day, status in (("2025-01-03", "present"), ("2025-01-04", "present"), ("2025-01-05", "absent")):
        record = attendance_service.mark_day(employer, record, day, status)

    result = payment_service.initiate(employer, attendance_service.compute_summary(record), method="razorpay")

    assert result.success
    records = payments_repo.list_for_employer("emp-1")
    assert len(records) == 1
    assert records[0].amount == 1000
    assert records[0].work_days == 2
    assert records[0].work_period == "January 2025"
    assert records[0].period_key == "emp-1_wrk-1_2025_1"


def test_initiate_without_checkout_creates_nothing(attendance_service, attendance_repo, clock, employer):
    session = RecordingSession()
    gateway = RazorpayRelayGateway("http://relay", session=session)
    payments_repo = InMemoryPaymentRepository()
    service = PaymentService(payments_repo, attendance_repo, {PaymentMethod.RAZORPAY: gateway}, clock=clock)
    summary = _summary(attendance_service, employer)

    with pytest.raises(ValidationError):
        service.initiate(employer, summary, method="razorpay")

    assert session.calls == []
    assert payments_repo.get_attempt(summary.key.doc_id) is None
    with pytest.raises(ValidationError):
        service.initiate(employer, summary, method="razorpay")


def test_session_that_loses_the_attempt_race_is_refused(attendance_service, attendance_repo, clock, employer, gateway):
    payments_repo = RacingPaymentRepository()
    service = PaymentService(payments_repo, attendance_repo, {PaymentMethod.RAZORPAY: gateway}, clock=clock)
    summary = _summary(attendance_service, employer)
    payments_repo.rival_order_id = "order_rival"

    with pytest.raises(ReconciliationRequiredError):
        service.initiate(employer, summary, method="razorpay")

    assert payments_repo.get_attempt(summary.key.doc_id).order_id == "order_rival"
    assert gateway.capture_calls == 0
    assert payments_repo.list_for_employer("emp-1") == []


def test_capture_colliding_with_stored_payment_is_kept_for_support(attendance_service, attendance_repo, clock, employer, gateway):
    payments_repo = StaleReadPaymentRepository()
    service = PaymentService(payments_repo, attendance_repo, {PaymentMethod.RAZORPAY: gateway}, clock=clock)
    summary = _summary(attendance_service, employer)
    first = service.initiate(employer, summary, method="razorpay")

    with pytest.raises(PaymentRecordingError) as exc:
        service.initiate(employer, summary, method="razorpay")

    assert isinstance(exc.value.__cause__, DuplicatePaymentError)
    assert exc.value.capture.capture.payment_id == "pay_order_2"
    assert payments_repo.list_for_employer("emp-1") == [first.record]
