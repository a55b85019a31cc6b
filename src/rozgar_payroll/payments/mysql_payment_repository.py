from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector

from ..core.enums import PaymentMethod, PaymentStatus
from ..core.exceptions import DuplicatePaymentError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import PaymentAttempt, PaymentRecord
from .repository import PaymentRepository

_PAYMENT_COLUMNS = """
    payment_record_id, period_key, employer_id, employer_name, worker_id, worker_name,
    job_title, amount, work_days, work_period, daily_rate, payment_method,
    gateway_payment_id, gateway_order_id, status, paid_at, created_at
"""

_ATTEMPT_COLUMNS = """
    period_key, employer_id, worker_id, payment_method, order_id, amount, work_days,
    daily_rate, job_title, work_period, employer_name, worker_name, opened_at
"""


def _to_record(r: dict) -> PaymentRecord:
    return PaymentRecord(
        payment_record_id=r["payment_record_id"],
        period_key=r["period_key"],
        employer_id=r["employer_id"],
        employer_name=r.get("employer_name"),
        worker_id=r["worker_id"],
        worker_name=r.get("worker_name"),
        job_title=r.get("job_title") or "",
        amount=int(r["amount"]),
        work_days=int(r["work_days"]),
        work_period=r["work_period"],
        daily_rate=int(r["daily_rate"]),
        payment_method=PaymentMethod(r["payment_method"]),
        gateway_payment_id=r["gateway_payment_id"],
        gateway_order_id=r.get("gateway_order_id"),
        status=PaymentStatus(r["status"]),
        paid_at=r["paid_at"],
        created_at=r["created_at"],
    )


def _to_attempt(r: dict) -> PaymentAttempt:
    return PaymentAttempt(
        period_key=r["period_key"],
        employer_id=r["employer_id"],
        worker_id=r["worker_id"],
        method=PaymentMethod(r["payment_method"]),
        order_id=r["order_id"],
        amount=int(r["amount"]),
        work_days=int(r["work_days"]),
        daily_rate=int(r["daily_rate"]),
        job_title=r.get("job_title") or "",
        work_period=r["work_period"],
        employer_name=r.get("employer_name"),
        worker_name=r.get("worker_name"),
        opened_at=r["opened_at"],
    )


class MySQLPaymentRepository(PaymentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(self, record: PaymentRecord) -> PaymentRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"""
                    INSERT INTO payments({_PAYMENT_COLUMNS})
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.payment_record_id,
                        record.period_key,
                        record.employer_id,
                        record.employer_name,
                        record.worker_id,
                        record.worker_name,
                        record.job_title,
                        int(record.amount),
                        int(record.work_days),
                        record.work_period,
                        int(record.daily_rate),
                        record.payment_method.value,
                        record.gateway_payment_id,
                        record.gateway_order_id,
                        record.status.value,
                        record.paid_at,
                        record.created_at,
                    ),
                )
        except mysql.connector.IntegrityError as exc:
            if is_duplicate_key(exc):
                raise DuplicatePaymentError("This work period has already been paid") from exc
            raise
        return record

    def get(self, payment_record_id: str) -> Optional[PaymentRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PAYMENT_COLUMNS} FROM payments WHERE payment_record_id=%s", (payment_record_id,))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def find_for_period(self, period_key: str) -> Optional[PaymentRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PAYMENT_COLUMNS} FROM payments WHERE period_key=%s", (period_key,))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_for_employer(self, employer_id: str, *, limit: int = 200) -> Sequence[PaymentRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_PAYMENT_COLUMNS} FROM payments WHERE employer_id=%s ORDER BY paid_at DESC LIMIT %s",
                (employer_id, int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_worker(self, worker_id: str, *, limit: int = 200) -> Sequence[PaymentRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_PAYMENT_COLUMNS} FROM payments WHERE worker_id=%s ORDER BY paid_at DESC LIMIT %s",
                (worker_id, int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def open_attempt(self, attempt: PaymentAttempt) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT IGNORE INTO payment_attempts({_ATTEMPT_COLUMNS})
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    attempt.period_key,
                    attempt.employer_id,
                    attempt.worker_id,
                    attempt.method.value,
                    attempt.order_id,
                    int(attempt.amount),
                    int(attempt.work_days),
                    int(attempt.daily_rate),
                    attempt.job_title,
                    attempt.work_period,
                    attempt.employer_name,
                    attempt.worker_name,
                    attempt.opened_at,
                ),
            )
            return cur.rowcount > 0

    def get_attempt(self, period_key: str) -> Optional[PaymentAttempt]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ATTEMPT_COLUMNS} FROM payment_attempts WHERE period_key=%s", (period_key,))
            r = fetchone(cur)
            return _to_attempt(r) if r else None

    def close_attempt(self, period_key: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM payment_attempts WHERE period_key=%s", (period_key,))
