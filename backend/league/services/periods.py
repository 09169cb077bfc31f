"""Resolve which weekly match period a point in time belongs to.

Periods repeat every week, so only the weekday, hour and minute of a period's
start are significant. A period stays active until the next one starts; the
last period of the week stays active until the first one of the following
week.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence, TypeVar

from ..time_utils import REFERENCE_TZ_LABEL, to_reference_time

WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)


class PeriodLike(Protocol):
    weekday: int
    hour: int
    minute: int


P = TypeVar("P", bound=PeriodLike)


def _key(weekday: int, hour: int, minute: int) -> int:
    return weekday * 10000 + hour * 100 + minute


def period_key(period: PeriodLike) -> int:
    """Return a comparable ``weekday*10000 + hour*100 + minute`` value."""

    return _key(period.weekday, period.hour, period.minute)


def instant_key(now: datetime | None = None) -> int:
    """Return the period key of ``now`` in league time (weekday 0 is Sunday)."""

    local = to_reference_time(now)
    # datetime.weekday() is Monday-based.
    weekday = (local.weekday() + 1) % 7
    return _key(weekday, local.hour, local.minute)


def sort_periods(periods: Sequence[P]) -> list[P]:
    """Return a new list ordered by start time; equal starts keep input order."""

    return sorted(periods, key=period_key)


def _current_index(ordered: Sequence[PeriodLike], now: datetime | None) -> int:
    current_key = instant_key(now)
    index = -1
    for position, period in enumerate(ordered):
        if period_key(period) > current_key:
            break
        index = position
    if index < 0:
        # Earlier in the week than every start: last week's final period is
        # still running.
        index = len(ordered) - 1
    return index


def current_period(periods: Sequence[P], now: datetime | None = None) -> P | None:
    """Return the period whose start is the latest one at or before ``now``.

    Returns ``None`` when no periods are configured. ``periods`` is not
    modified; an ordered copy is scanned instead.
    """

    if not periods:
        return None
    ordered = sort_periods(periods)
    return ordered[_current_index(ordered, now)]


def next_period(periods: Sequence[P], now: datetime | None = None) -> P | None:
    """Return the period that follows the current one, wrapping to the first."""

    if not periods:
        return None
    ordered = sort_periods(periods)
    index = _current_index(ordered, now)
    return ordered[(index + 1) % len(ordered)]


def _clock(hour: int, minute: int) -> str:
    hour12 = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour12}:{minute:02d} {suffix}"


def format_period(period: PeriodLike) -> str:
    """Format a period start for display, e.g. ``"Tuesday 5:00 PM MST"``."""

    return (
        f"{WEEKDAY_NAMES[period.weekday]} "
        f"{_clock(period.hour, period.minute)} {REFERENCE_TZ_LABEL}"
    )


def format_period_short(period: PeriodLike) -> str:
    """Compact form without the zone, e.g. ``"Tue 5:00 PM"``."""

    return f"{WEEKDAY_NAMES[period.weekday][:3]} {_clock(period.hour, period.minute)}"
