from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.validators import require_non_empty
from ..core.enums import ApplicationStatus
from ..core.exceptions import AuthorizationError, InvalidTransitionError, NotFoundError, ValidationError
from ..identity.guard import require_owner, require_verified
from ..identity.model import Identity
from ..notifications.notifier import Notifier, notify_quietly
from .model import JobApplication
from .repository import ApplicationRepository

logger = logging.getLogger(__name__)


class ApplicationService:
    """Use case: job applications and their status workflow.

    pending -> accepted | rejected (employer), accepted -> left (worker).
    Rejected and left are terminal. Notification delivery never decides
    whether a transition succeeds.
    """

    def __init__(self, applications: ApplicationRepository, *, notifier: Optional[Notifier] = None, clock=now_utc):
        self._applications = applications
        self._notifier = notifier
        self._clock = clock

    def apply(
        self,
        identity: Optional[Identity],
        *,
        job_id: str,
        employer_id: str,
        job_title: str = "",
        employer_email: Optional[str] = None,
    ) -> JobApplication:
        identity = require_verified(identity)
        job_id = require_non_empty(job_id, "Job")
        employer_id = require_non_empty(employer_id, "Employer")
        if employer_id == identity.user_id:
            raise ValidationError("You cannot apply to your own job")
        if self._applications.find_live(job_id=job_id, applicant_id=identity.user_id):
            raise ValidationError("You have already applied for this job")

        now = self._clock()
        application = JobApplication(
            application_id=uuid.uuid4().hex,
            job_id=job_id,
            job_title=(job_title or "").strip(),
            employer_id=employer_id,
            applicant_id=identity.user_id,
            applicant_name=identity.display_name,
            applicant_email=identity.email,
            employer_email=employer_email,
            status=ApplicationStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        return self._applications.create(application)

    def get(self, identity: Optional[Identity], application_id: str) -> JobApplication:
        identity = require_verified(identity)
        application = self._load(application_id)
        if identity.user_id not in {application.employer_id, application.applicant_id}:
            raise AuthorizationError("You are not allowed to view this application")
        return application

    def accept(self, identity: Optional[Identity], application_id: str) -> JobApplication:
        identity = require_verified(identity)
        application = self._load(application_id)
        require_owner(identity, application.employer_id, what="application")
        updated = self._transition(application, ApplicationStatus.ACCEPTED)
        notify_quietly(
            self._notifier,
            updated.applicant_email,
            f"Application accepted - {updated.job_title}",
            f"Congratulations! Your application for {updated.job_title} has been accepted.",
        )
        return updated

    def reject(self, identity: Optional[Identity], application_id: str) -> JobApplication:
        identity = require_verified(identity)
        application = self._load(application_id)
        require_owner(identity, application.employer_id, what="application")
        updated = self._transition(application, ApplicationStatus.REJECTED)
        notify_quietly(
            self._notifier,
            updated.applicant_email,
            f"Application update - {updated.job_title}",
            f"Thank you for applying for {updated.job_title}. The employer has decided not to proceed.",
        )
        return updated

    def leave(self, identity: Optional[Identity], application_id: str) -> JobApplication:
        identity = require_verified(identity)
        application = self._load(application_id)
        require_owner(identity, application.applicant_id, what="application")
        updated = self._transition(application, ApplicationStatus.LEFT)
        notify_quietly(
            self._notifier,
            updated.employer_email,
            f"Worker Left Job - {updated.job_title}",
            f"{updated.applicant_name or 'A worker'} has left the job {updated.job_title}.",
        )
        return updated

    def list_for_job(self, identity: Optional[Identity], job_id: str) -> Sequence[JobApplication]:
        identity = require_verified(identity)
        items = self._applications.list_for_job(
            job_id,
            statuses=(ApplicationStatus.PENDING, ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED),
        )
        return [a for a in items if a.employer_id == identity.user_id]

    def list_mine(self, identity: Optional[Identity], *, current_only: bool = False) -> Sequence[JobApplication]:
        identity = require_verified(identity)
        statuses = (ApplicationStatus.ACCEPTED,) if current_only else None
        return self._applications.list_for_applicant(identity.user_id, statuses=statuses)

    def _load(self, application_id: str) -> JobApplication:
        application = self._applications.get(application_id)
        if not application:
            raise NotFoundError("Application not found")
        return application

    def _transition(self, application: JobApplication, status: ApplicationStatus) -> JobApplication:
        if not application.can_become(status):
            raise InvalidTransitionError(
                f"Application is {application.status.value} and cannot become {status.value}"
            )

        now = self._clock()
        ok = self._applications.update_status(
            application_id=application.application_id,
            expected=application.status,
            status=status,
            updated_at=now,
            left_at=now if status == ApplicationStatus.LEFT else None,
        )
        if not ok:
            raise InvalidTransitionError("Application was updated by someone else, reload and try again")

        logger.info("application %s: %s -> %s", application.application_id, application.status.value, status.value)
        updated = self._applications.get(application.application_id)
        if not updated:
            raise NotFoundError("Application not found")
        return updated
