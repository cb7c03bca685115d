# currency_intel/utils/date_utils.py
"""
Date helpers shared by the revaluation services.

All instants handled by the engine are timezone-aware. Databases without
timezone support (SQLite) hand back naive datetimes; those are interpreted
as UTC.
"""

from datetime import date, datetime, time, timedelta, timezone


def ensure_utc(value: datetime | date) -> datetime:
    """
    Return a timezone-aware datetime.

    - Naive datetimes are assumed to be UTC
    - Aware datetimes are converted to UTC
    - Plain dates become midnight UTC
    """
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_window(
        start: datetime | date | None,
        end: datetime | date | None,
        default_days: int,
        now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """
    Resolve an inclusive [start, end] window.

    end defaults to now; start defaults to default_days before end.
    A plain date given as end covers that whole day.
    """
    if end is None:
        end_dt = ensure_utc(now or datetime.now(timezone.utc))
    elif isinstance(end, datetime):
        end_dt = ensure_utc(end)
    else:
        end_dt = datetime.combine(end, time.max, tzinfo=timezone.utc)

    if start is None:
        start_dt = end_dt - timedelta(days=default_days)
    else:
        start_dt = ensure_utc(start)

    return start_dt, end_dt
