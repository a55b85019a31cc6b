from __future__ import annotations

import threading
from typing import Optional, Sequence

from ..core.exceptions import DuplicatePaymentError
from .model import PaymentAttempt, PaymentRecord
from .repository import PaymentRepository


class InMemoryPaymentRepository(PaymentRepository):
    def __init__(self):
        self._lock = threading.Lock()
        self._records: dict[str, PaymentRecord] = {}
        self._by_period: dict[str, str] = {}
        self._attempts: dict[str, PaymentAttempt] = {}

    def add(self, record: PaymentRecord) -> PaymentRecord:
        with self._lock:
            if record.period_key in self._by_period:
                raise DuplicatePaymentError("This work period has already been paid")
            self._records[record.payment_record_id] = record
            self._by_period[record.period_key] = record.payment_record_id
            return record

    def get(self, payment_record_id: str) -> Optional[PaymentRecord]:
        with self._lock:
            return self._records.get(payment_record_id)

    def find_for_period(self, period_key: str) -> Optional[PaymentRecord]:
        with self._lock:
            rid = self._by_period.get(period_key)
            return self._records.get(rid) if rid else None

    def _newest(self, predicate, limit: int) -> Sequence[PaymentRecord]:
        with self._lock:
            items = [r for r in self._records.values() if predicate(r)]
        items.sort(key=lambda r: r.paid_at, reverse=True)
        return items[: int(limit)]

    def list_for_employer(self, employer_id: str, *, limit: int = 200) -> Sequence[PaymentRecord]:
        return self._newest(lambda r: r.employer_id == employer_id, limit)

    def list_for_worker(self, worker_id: str, *, limit: int = 200) -> Sequence[PaymentRecord]:
        return self._newest(lambda r: r.worker_id == worker_id, limit)

    def open_attempt(self, attempt: PaymentAttempt) -> bool:
        with self._lock:
            if attempt.period_key in self._attempts:
                return False
            self._attempts[attempt.period_key] = attempt
            return True

    def get_attempt(self, period_key: str) -> Optional[PaymentAttempt]:
        with self._lock:
            return self._attempts.get(period_key)

    def close_attempt(self, period_key: str) -> None:
        with self._lock:
            self._attempts.pop(period_key, None)
