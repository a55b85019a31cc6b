from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import ApplicationStatus
from .model import JobApplication


class ApplicationRepository(Protocol):
    def create(self, application: JobApplication) -> JobApplication:
        raise NotImplementedError

    def get(self, application_id: str) -> Optional[JobApplication]:
        raise NotImplementedError

    def find_live(self, *, job_id: str, applicant_id: str) -> Optional[JobApplication]:
        """Pending or accepted application of this worker for this job."""

        raise NotImplementedError

    def update_status(
        self,
        *,
        application_id: str,
        expected: ApplicationStatus,
        status: ApplicationStatus,
        updated_at: datetime,
        left_at: Optional[datetime] = None,
    ) -> bool:
        """Compare-and-set: only applies when the stored status is `expected`."""

        raise NotImplementedError

    def list_for_job(self, job_id: str, *, statuses: Optional[Iterable[ApplicationStatus]] = None) -> Sequence[JobApplication]:
        raise NotImplementedError

    def list_for_applicant(
        self, applicant_id: str, *, statuses: Optional[Iterable[ApplicationStatus]] = None
    ) -> Sequence[JobApplication]:
        raise NotImplementedError
