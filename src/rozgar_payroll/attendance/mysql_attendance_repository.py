from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.datetime_utils import parse_iso_date
from ..core.enums import AttendanceMark
from ..core.exceptions import ConcurrentUpdateError, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord, PeriodKey
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _load(cur, doc_id: str) -> Optional[AttendanceRecord]:
        cur.execute(
            """
            SELECT doc_id, employer_id, worker_id, year, month, job_title, daily_rate,
                   version, created_at, updated_at
            FROM attendance_records
            WHERE doc_id=%s
            """,
            (doc_id,),
        )
        r = fetchone(cur)
        if not r:
            return None

        cur.execute("SELECT day, status FROM attendance_days WHERE doc_id=%s ORDER BY day", (doc_id,))
        attendance = {d["day"].strftime("%Y-%m-%d"): AttendanceMark(d["status"]) for d in fetchall(cur)}

        return AttendanceRecord(
            key=PeriodKey(
                employer_id=r["employer_id"],
                worker_id=r["worker_id"],
                year=int(r["year"]),
                month=int(r["month"]),
            ),
            job_title=r["job_title"] or "",
            daily_rate=int(r["daily_rate"]),
            attendance=attendance,
            created_at=r["created_at"],
            updated_at=r["updated_at"],
            version=int(r["version"]),
        )

    def get(self, key: PeriodKey) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._load(cur, key.doc_id)

    def create_if_absent(self, record: AttendanceRecord) -> AttendanceRecord:
        key = record.key
        with db_cursor(self._conn_factory) as (_, cur):
            # INSERT IGNORE keeps the first writer's row when two sessions open the same month.
            cur.execute(
                """
                INSERT IGNORE INTO attendance_records(
                    doc_id, employer_id, worker_id, year, month, job_title, daily_rate,
                    version, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,1,%s,%s)
                """,
                (
                    key.doc_id,
                    key.employer_id,
                    key.worker_id,
                    key.year,
                    key.month,
                    record.job_title,
                    int(record.daily_rate),
                    record.created_at,
                    record.updated_at,
                ),
            )
            stored = self._load(cur, key.doc_id)
            if not stored:
                raise NotFoundError("Attendance period could not be created")
            return stored

    def set_day(
        self,
        *,
        key: PeriodKey,
        day: str,
        status: AttendanceMark,
        updated_at: datetime,
        expected_version: Optional[int] = None,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT version FROM attendance_records WHERE doc_id=%s FOR UPDATE", (key.doc_id,))
            row = fetchone(cur)
            if not row:
                raise NotFoundError("Attendance period does not exist")
            if expected_version is not None and int(row["version"]) != int(expected_version):
                raise ConcurrentUpdateError("Attendance was changed by someone else, reload and try again")

            cur.execute(
                """
                INSERT INTO attendance_days(doc_id, day, status)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE status=VALUES(status)
                """,
                (key.doc_id, parse_iso_date(day), status.value),
            )
            cur.execute(
                "UPDATE attendance_records SET version=version+1, updated_at=%s WHERE doc_id=%s",
                (updated_at, key.doc_id),
            )
            stored = self._load(cur, key.doc_id)
            if not stored:
                raise NotFoundError("Attendance period does not exist")
            return stored
