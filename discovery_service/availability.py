from datetime import date, datetime, timedelta
from typing import Iterable

from .schemas import AvailabilityTemplate, Commitment

DEFAULT_HORIZON_DAYS = 14
DEFAULT_MAX_RESULTS = 6


def weekday_index(day: date) -> int:
    """Template weekday for a date, 0=Sunday .. 6=Saturday."""
    return (day.weekday() + 1) % 7


def _local_date(moment: datetime, now: datetime) -> date:
    if moment.tzinfo is None:
        return moment.date()
    # a naive now is local wall-clock time
    return moment.astimezone(now.tzinfo).date()


def booked_dates(commitments: Iterable[Commitment], now: datetime) -> set[date]:
    return {_local_date(c.scheduled_at, now) for c in commitments}


def suggest_slots(
    template: AvailabilityTemplate | None,
    commitments: Iterable[Commitment],
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    max_results: int = DEFAULT_MAX_RESULTS,
    now: datetime | None = None,
) -> list[datetime]:
    """
    Next bookable start times from a weekly template.

    Walks `horizon_days` calendar days starting today. A day is skipped when the
    template marks it unavailable or when any commitment already falls on it
    (the whole day is blocked, not only the committed hours). Only starts
    strictly after `now` are returned, so earlier slots of today drop out.
    """
    if template is None:
        return []

    now = now or datetime.now()
    blocked = booked_dates(commitments, now)
    suggestions = []

    for offset in range(horizon_days):
        day = now.date() + timedelta(days=offset)

        entry = template.for_weekday(weekday_index(day))
        if entry is None or not entry.available:
            continue
        if day in blocked:
            continue

        for slot in entry.slots:
            start = datetime.combine(day, slot.start, tzinfo=now.tzinfo)
            if start > now:
                suggestions.append(start)

    suggestions.sort()
    return suggestions[:max(0, max_results)]
