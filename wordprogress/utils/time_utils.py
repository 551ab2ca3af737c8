"""Helpers keeping every instant handled by the core timezone-aware UTC."""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Return *value* as an aware UTC datetime.

    SQLite hands back naive datetimes even for ``DateTime(timezone=True)``
    columns; those are stored in UTC, so naive values are tagged as UTC.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_instant(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 string (``Z`` suffix accepted) into aware UTC."""

    if value is None or isinstance(value, datetime):
        return ensure_utc(value)
    value = value.strip()
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(value))


def same_utc_day(left: datetime | None, right: datetime | None) -> bool:
    if left is None or right is None:
        return False
    return ensure_utc(left).date() == ensure_utc(right).date()
