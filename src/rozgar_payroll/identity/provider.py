from __future__ import annotations

from typing import Mapping, Optional

from ..core.enums import Role
from .model import Identity

_TRUTHY = {"1", "true", "yes"}


class HeaderIdentityProvider:
    """Reads the caller identity from headers set by the identity proxy.

    The proxy in front of the API validates the user's token and forwards the
    resolved claims; requests that reach us without them are anonymous.
    """

    def __init__(
        self,
        *,
        user_header: str = "X-User-Id",
        verified_header: str = "X-Email-Verified",
        email_header: str = "X-User-Email",
        role_header: str = "X-User-Role",
        name_header: str = "X-User-Name",
    ):
        self._user_header = user_header
        self._verified_header = verified_header
        self._email_header = email_header
        self._role_header = role_header
        self._name_header = name_header

    def resolve(self, headers: Mapping[str, str]) -> Optional[Identity]:
        user_id = (headers.get(self._user_header) or "").strip()
        if not user_id:
            return None

        role_raw = (headers.get(self._role_header) or "").strip().lower()
        try:
            role = Role(role_raw) if role_raw else None
        except ValueError:
            role = None

        return Identity(
            user_id=user_id,
            email_verified=(headers.get(self._verified_header) or "").strip().lower() in _TRUTHY,
            email=(headers.get(self._email_header) or "").strip() or None,
            role=role,
            display_name=(headers.get(self._name_header) or "").strip() or None,
        )
