from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import ApplicationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import JobApplication
from .repository import ApplicationRepository

_COLUMNS = """
    application_id, job_id, job_title, employer_id, applicant_id, applicant_name,
    applicant_email, employer_email, status, created_at, updated_at, left_at
"""


def _to_application(r: dict) -> JobApplication:
    return JobApplication(
        application_id=r["application_id"],
        job_id=r["job_id"],
        job_title=r.get("job_title") or "",
        employer_id=r["employer_id"],
        applicant_id=r["applicant_id"],
        applicant_name=r.get("applicant_name"),
        applicant_email=r.get("applicant_email"),
        employer_email=r.get("employer_email"),
        status=ApplicationStatus(r["status"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        left_at=r.get("left_at"),
    )


class MySQLApplicationRepository(ApplicationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, application: JobApplication) -> JobApplication:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO job_applications({_COLUMNS})
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    application.application_id,
                    application.job_id,
                    application.job_title,
                    application.employer_id,
                    application.applicant_id,
                    application.applicant_name,
                    application.applicant_email,
                    application.employer_email,
                    application.status.value,
                    application.created_at,
                    application.updated_at,
                    application.left_at,
                ),
            )
        return application

    def get(self, application_id: str) -> Optional[JobApplication]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM job_applications WHERE application_id=%s", (application_id,))
            r = fetchone(cur)
            return _to_application(r) if r else None

    def find_live(self, *, job_id: str, applicant_id: str) -> Optional[JobApplication]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM job_applications
                WHERE job_id=%s AND applicant_id=%s AND status IN (%s, %s)
                LIMIT 1
                """,
                (job_id, applicant_id, ApplicationStatus.PENDING.value, ApplicationStatus.ACCEPTED.value),
            )
            r = fetchone(cur)
            return _to_application(r) if r else None

    def update_status(
        self,
        *,
        application_id: str,
        expected: ApplicationStatus,
        status: ApplicationStatus,
        updated_at: datetime,
        left_at: Optional[datetime] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE job_applications
                SET status=%s, updated_at=%s, left_at=COALESCE(%s, left_at)
                WHERE application_id=%s AND status=%s
                """,
                (status.value, updated_at, left_at, application_id, expected.value),
            )
            return cur.rowcount > 0

    def _list(self, column: str, value: str, statuses: Optional[Iterable[ApplicationStatus]]) -> Sequence[JobApplication]:
        clauses = [f"{column}=%s"]
        params: list[object] = [value]
        wanted = [s.value for s in statuses] if statuses is not None else None
        if wanted is not None:
            if not wanted:
                return []
            clauses.append(f"status IN ({', '.join(['%s'] * len(wanted))})")
            params.extend(wanted)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM job_applications WHERE {' AND '.join(clauses)} ORDER BY created_at DESC",
                tuple(params),
            )
            return [_to_application(r) for r in fetchall(cur)]

    def list_for_job(self, job_id: str, *, statuses: Optional[Iterable[ApplicationStatus]] = None) -> Sequence[JobApplication]:
        return self._list("job_id", job_id, statuses)

    def list_for_applicant(
        self, applicant_id: str, *, statuses: Optional[Iterable[ApplicationStatus]] = None
    ) -> Sequence[JobApplication]:
        return self._list("applicant_id", applicant_id, statuses)
