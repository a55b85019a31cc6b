from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import ApplicationStatus
from .model import JobApplication
from .repository import ApplicationRepository

_LIVE = {ApplicationStatus.PENDING, ApplicationStatus.ACCEPTED}


class InMemoryApplicationRepository(ApplicationRepository):
    def __init__(self):
        self._lock = threading.Lock()
        self._items: dict[str, JobApplication] = {}

    def create(self, application: JobApplication) -> JobApplication:
        with self._lock:
            self._items[application.application_id] = application
            return application

    def get(self, application_id: str) -> Optional[JobApplication]:
        with self._lock:
            return self._items.get(application_id)

    def find_live(self, *, job_id: str, applicant_id: str) -> Optional[JobApplication]:
        with self._lock:
            for a in self._items.values():
                if a.job_id == job_id and a.applicant_id == applicant_id and a.status in _LIVE:
                    return a
        return None

    def update_status(
        self,
        *,
        application_id: str,
        expected: ApplicationStatus,
        status: ApplicationStatus,
        updated_at: datetime,
        left_at: Optional[datetime] = None,
    ) -> bool:
        with self._lock:
            current = self._items.get(application_id)
            if not current or current.status != expected:
                return False
            self._items[application_id] = replace(
                current,
                status=status,
                updated_at=updated_at,
                left_at=left_at if left_at is not None else current.left_at,
            )
            return True

    def _select(self, predicate, statuses) -> Sequence[JobApplication]:
        wanted = set(statuses) if statuses is not None else None
        with self._lock:
            items = [a for a in self._items.values() if predicate(a) and (wanted is None or a.status in wanted)]
        items.sort(key=lambda a: a.created_at, reverse=True)
        return items

    def list_for_job(self, job_id: str, *, statuses: Optional[Iterable[ApplicationStatus]] = None) -> Sequence[JobApplication]:
        return self._select(lambda a: a.job_id == job_id, statuses)

    def list_for_applicant(
        self, applicant_id: str, *, statuses: Optional[Iterable[ApplicationStatus]] = None
    ) -> Sequence[JobApplication]:
        return self._select(lambda a: a.applicant_id == applicant_id, statuses)
