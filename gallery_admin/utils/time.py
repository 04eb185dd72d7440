"""Time utilities."""
from datetime import UTC, date, datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return current UTC time with timezone awareness."""

    return datetime.now(tz=UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and normalize aware ones."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(day: date) -> datetime:
    """Return midnight UTC for ``day``."""

    return datetime(day.year, day.month, day.day, tzinfo=UTC)


def last_days(now: datetime, count: int) -> list[date]:
    """Return the ``count`` UTC calendar days ending with today, oldest first."""

    today = as_utc(now).date()
    return [today - timedelta(days=offset) for offset in range(count - 1, -1, -1)]


__all__ = ["utcnow", "as_utc", "start_of_day", "last_days"]
