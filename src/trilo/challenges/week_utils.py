"""Calendar-week boundaries for the weekly reset.

The week's first day is configurable (Python weekday numbering,
0=Monday ... 6=Sunday). The default is Sunday.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

SUNDAY = 6


def utc_today(now: datetime | None = None) -> date:
    """Today's date in UTC."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).date()


def get_week_start(d: date | datetime, first_weekday: int = SUNDAY) -> date:
    """Get the first day of the calendar week containing d."""
    day = d.date() if isinstance(d, datetime) else d
    return day - timedelta(days=(day.weekday() - first_weekday) % 7)


def get_week_window(d: date | datetime, first_weekday: int = SUNDAY) -> tuple[date, date]:
    """Get (week_start, week_end) for the week containing d. Both ends inclusive."""
    start = get_week_start(d, first_weekday)
    return start, start + timedelta(days=6)
