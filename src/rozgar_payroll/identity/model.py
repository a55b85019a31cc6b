from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Identity:
    """Caller identity as supplied by the identity service."""

    user_id: str
    email_verified: bool
    email: Optional[str] = None
    role: Optional[Role] = None
    display_name: Optional[str] = None
