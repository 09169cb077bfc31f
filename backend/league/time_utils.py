"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

# League schedules are kept in Mountain Standard Time all year round.
REFERENCE_TZ = timezone(timedelta(hours=-7), "MST")
REFERENCE_TZ_LABEL = "MST"


def require_utc(value: datetime | None, *, field_name: str = "timestamp") -> datetime | None:
    """Ensure ``value`` includes timezone info and return a UTC-normalized copy.

    Args:
        value: The datetime to validate.
        field_name: Human-readable name used in validation errors.

    Returns:
        A timezone-aware datetime normalized to UTC, or ``None`` if ``value`` is
        ``None``.

    Raises:
        ValueError: If ``value`` is timezone-naive.
    """

    if value is None:
        return None

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{field_name} must include a timezone offset")

    return value.astimezone(timezone.utc)


def coerce_utc(value: datetime | None) -> datetime | None:
    """Return a UTC-normalized datetime, assuming naive values are already UTC."""

    if value is None:
        return None

    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)

    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_reference_time(value: datetime | None = None) -> datetime:
    """Return ``value`` (default: now) expressed in the fixed league offset.

    The offset is a constant UTC-7; no daylight-saving calendar is applied.
    """

    normalized = coerce_utc(value) if value is not None else utcnow()
    return normalized.astimezone(REFERENCE_TZ)
