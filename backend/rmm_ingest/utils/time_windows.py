"""Time window helpers."""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def trailing(now: datetime, minutes: int) -> tuple[datetime, datetime]:
    """Return the window ending at `now` and spanning `minutes` back."""

    return now - timedelta(minutes=minutes), now
