from __future__ import annotations

import calendar
from datetime import date, datetime, timezone

from ..core.constants import MONTH_NAMES
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD")


def now_utc() -> datetime:
    """Current time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def require_month(year: int, month: int) -> tuple[int, int]:
    year, month = int(year), int(month)
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if year < 1970:
        raise ValidationError("Year is out of range")
    return year, month


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def period_label(year: int, month: int) -> str:
    """Human readable period, e.g. 'January 2025'."""
    return f"{MONTH_NAMES[int(month) - 1]} {int(year)}"
