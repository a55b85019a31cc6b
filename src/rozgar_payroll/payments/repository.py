from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import PaymentAttempt, PaymentRecord


class PaymentRepository(Protocol):
    # Completed payments (append-only)
    def add(self, record: PaymentRecord) -> PaymentRecord:
        """Persist a record. Raises DuplicatePaymentError if the period is already paid."""

        raise NotImplementedError

    def get(self, payment_record_id: str) -> Optional[PaymentRecord]:
        raise NotImplementedError

    def find_for_period(self, period_key: str) -> Optional[PaymentRecord]:
        raise NotImplementedError

    def list_for_employer(self, employer_id: str, *, limit: int = 200) -> Sequence[PaymentRecord]:
        """Newest first."""

        raise NotImplementedError

    def list_for_worker(self, worker_id: str, *, limit: int = 200) -> Sequence[PaymentRecord]:
        """Newest first."""

        raise NotImplementedError

    # Attempts in flight
    def open_attempt(self, attempt: PaymentAttempt) -> bool:
        """Register an attempt; False when the period already has one open."""

        raise NotImplementedError

    def get_attempt(self, period_key: str) -> Optional[PaymentAttempt]:
        raise NotImplementedError

    def close_attempt(self, period_key: str) -> None:
        raise NotImplementedError
