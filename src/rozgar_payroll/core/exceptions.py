from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation_error"


class NothingToPayError(ValidationError):
    """Raised when a payment is requested for a zero total."""

    code = "nothing_to_pay"


class AuthenticationError(DomainError):
    """Raised when there is no caller identity."""

    code = "unauthenticated"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "forbidden"


class VerificationRequiredError(AuthorizationError):
    """Raised when the caller has not verified their account."""

    code = "verify_account"


class NotFoundError(DomainError):
    code = "not_found"


class InvalidTransitionError(DomainError):
    """Raised when an application status change is not allowed."""

    code = "invalid_transition"


class ConcurrentUpdateError(DomainError):
    """Raised when a record changed since the caller read it."""

    code = "concurrent_update"


class DuplicatePaymentError(DomainError):
    """Raised when a period already has a completed payment."""

    code = "duplicate_payment"


class ReconciliationRequiredError(DomainError):
    """Raised when an earlier attempt for the period has an unknown outcome."""

    code = "reconciliation_required"


class TransientError(DomainError):
    """Store or gateway unreachable. Safe to retry; never retried automatically."""

    code = "service_unavailable"


class PaymentOutcomeUnknownError(DomainError):
    """The gateway did not answer in time or the payment is still settling."""

    code = "payment_outcome_unknown"

    def __init__(self, message: str, *, order_id: Optional[str] = None):
        super().__init__(message)
        self.order_id = order_id


class PaymentRecordingError(DomainError):
    """Money was captured but the payment record could not be written.

    Carries the verified capture so persistence can be retried without
    capturing again.
    """

    code = "payment_recording_failed"

    def __init__(self, message: str, *, capture: Any):
        super().__init__(message)
        self.capture = capture
