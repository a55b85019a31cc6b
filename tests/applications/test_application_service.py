import pytest

from rozgar_payroll.applications.memory_application_repository import InMemoryApplicationRepository
from rozgar_payroll.applications.service import ApplicationService
from rozgar_payroll.core.enums import ApplicationStatus
from rozgar_payroll.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    VerificationRequiredError,
)
from rozgar_payroll.identity.model import Identity

EMPLOYER = Identity(user_id="emp-1", email_verified=True, email="owner@example.com")
WORKER = Identity(user_id="wrk-1", email_verified=True, email="ravi@example.com", display_name="Ravi")


class RecordingNotifier:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send(self, to, subject, body):
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append((to, subject))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(clock, notifier):
    return ApplicationService(InMemoryApplicationRepository(), notifier=notifier, clock=clock)


def _apply(service, job_id="job-1"):
    return service.apply(WORKER, job_id=job_id, employer_id="emp-1", job_title="Mason", employer_email="owner@example.com")


def test_apply_creates_pending(service):
    application = _apply(service)

    assert application.status == ApplicationStatus.PENDING
    assert application.applicant_name == "Ravi"
    assert service.get(EMPLOYER, application.application_id) == application


def test_cannot_apply_twice_while_live(service):
    _apply(service)

    with pytest.raises(ValidationError):
        _apply(service)


def test_cannot_apply_to_own_job(service):
    with pytest.raises(ValidationError):
        service.apply(EMPLOYER, job_id="job-1", employer_id="emp-1")


def test_unverified_cannot_apply(service):
    with pytest.raises(VerificationRequiredError):
        service.apply(Identity(user_id="wrk-2", email_verified=False), job_id="job-1", employer_id="emp-1")


def test_accept_then_leave(service, notifier):
    application = _apply(service)

    accepted = service.accept(EMPLOYER, application.application_id)
    left = service.leave(WORKER, application.application_id)

    assert accepted.status == ApplicationStatus.ACCEPTED
    assert left.status == ApplicationStatus.LEFT
    assert left.left_at is not None
    assert [to for to, _ in notifier.sent] == ["ravi@example.com", "owner@example.com"]


def test_rejected_is_terminal(service):
    application = _apply(service)
    service.reject(EMPLOYER, application.application_id)

    with pytest.raises(InvalidTransitionError):
        service.accept(EMPLOYER, application.application_id)


def test_pending_cannot_leave(service):
    application = _apply(service)

    with pytest.raises(InvalidTransitionError):
        service.leave(WORKER, application.application_id)


def test_left_worker_can_apply_again(service):
    first = _apply(service)
    service.accept(EMPLOYER, first.application_id)
    service.leave(WORKER, first.application_id)

    second = _apply(service)

    assert second.application_id != first.application_id


def test_only_employer_decides(service):
    application = _apply(service)

    with pytest.raises(AuthorizationError):
        service.accept(WORKER, application.application_id)


def test_only_applicant_leaves(service):
    application = _apply(service)
    service.accept(EMPLOYER, application.application_id)

    with pytest.raises(AuthorizationError):
        service.leave(EMPLOYER, application.application_id)


def test_strangers_cannot_view(service):
    application = _apply(service)

    with pytest.raises(AuthorizationError):
        service.get(Identity(user_id="someone", email_verified=True), application.application_id)


def test_missing_application(service):
    with pytest.raises(NotFoundError):
        service.accept(EMPLOYER, "nope")


def test_notification_failure_does_not_undo_transition(clock):
    service = ApplicationService(InMemoryApplicationRepository(), notifier=RecordingNotifier(fail=True), clock=clock)
    application = _apply(service)

    accepted = service.accept(EMPLOYER, application.application_id)

    assert accepted.status == ApplicationStatus.ACCEPTED


def test_listings(service):
    a = _apply(service, "job-1")
    b = _apply(service, "job-2")
    service.accept(EMPLOYER, b.application_id)

    assert [x.application_id for x in service.list_for_job(EMPLOYER, "job-1")] == [a.application_id]
    assert service.list_for_job(Identity(user_id="emp-2", email_verified=True), "job-1") == []
    assert {x.application_id for x in service.list_mine(WORKER)} == {a.application_id, b.application_id}
    assert [x.application_id for x in service.list_mine(WORKER, current_only=True)] == [b.application_id]
