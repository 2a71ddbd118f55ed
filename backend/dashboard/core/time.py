from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return an aware UTC timestamp.

    Use this instead of datetime.utcnow() to avoid tz-naive datetimes and
    upcoming stdlib deprecations.
    """

    return datetime.now(timezone.utc)


def as_aware_utc(dt: datetime) -> datetime:
    # DB backends may return tz-naive or tz-aware datetimes; normalize to aware UTC.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def add_months(dt: datetime, months: int) -> datetime:
    """Shift a timestamp by whole calendar months.

    Days past the end of the target month roll over into the following month,
    so Dec 31 + 2 months is Mar 3 (or Mar 2 in a leap year) rather than being
    clamped to the last day of February.
    """

    index = dt.month - 1 + months
    year, month = dt.year + index // 12, index % 12 + 1
    first = dt.replace(year=year, month=month, day=1)
    return first + timedelta(days=dt.day - 1)
