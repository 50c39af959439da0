from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: Optional[str]) -> date:
    """Parse YYYY-MM-DD string into date."""
    if value is not None and not isinstance(value, str):
        raise ValidationError("Invalid date (YYYY-MM-DD)")
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date (YYYY-MM-DD)")


def parse_hhmm(value: str) -> time:
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        raise ValidationError("Invalid time (HH:MM)")


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp into a naive local datetime.

    Values with an offset are converted to local time, matching ``now_local``.
    """
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError("Invalid timestamp (ISO 8601)")
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError("Invalid timestamp (ISO 8601)")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def inclusive_days(start: date, end: date) -> int:
    return (end - start).days + 1


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def iso_or_none(value) -> Optional[str]:
    return value.isoformat() if value is not None else None
