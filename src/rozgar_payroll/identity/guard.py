from __future__ import annotations

from typing import Optional

from ..core.exceptions import AuthenticationError, AuthorizationError, VerificationRequiredError
from .model import Identity


def require_verified(identity: Optional[Identity]) -> Identity:
    """Refuse unauthenticated or unverified callers before any mutation."""

    if identity is None or not identity.user_id:
        raise AuthenticationError("You must be logged in")
    if not identity.email_verified:
        raise VerificationRequiredError("Please verify your email address first")
    return identity


def require_owner(identity: Identity, owner_id: str, *, what: str = "record") -> None:
    if identity.user_id != owner_id:
        raise AuthorizationError(f"You are not allowed to modify this {what}")
