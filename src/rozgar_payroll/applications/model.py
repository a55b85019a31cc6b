from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ApplicationStatus

ALLOWED_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset({ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED}),
    ApplicationStatus.ACCEPTED: frozenset({ApplicationStatus.LEFT}),
    ApplicationStatus.REJECTED: frozenset(),
    ApplicationStatus.LEFT: frozenset(),
}


@dataclass(frozen=True)
class JobApplication:
    application_id: str
    job_id: str
    job_title: str
    employer_id: str
    applicant_id: str
    status: ApplicationStatus
    created_at: datetime
    updated_at: datetime
    applicant_name: Optional[str] = None
    applicant_email: Optional[str] = None
    employer_email: Optional[str] = None
    left_at: Optional[datetime] = None

    def can_become(self, status: ApplicationStatus) -> bool:
        return status in ALLOWED_TRANSITIONS[self.status]

    def to_dict(self) -> dict:
        return {
            "id": self.application_id,
            "jobId": self.job_id,
            "jobTitle": self.job_title,
            "employerId": self.employer_id,
            "applicantId": self.applicant_id,
            "applicantName": self.applicant_name,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "leftAt": self.left_at.isoformat() if self.left_at else None,
        }
