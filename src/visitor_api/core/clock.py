"""Time helpers: a single UTC clock and calendar-day bounds."""

from datetime import UTC, date, datetime, time, timedelta, tzinfo


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def epoch_millis(value: datetime) -> int:
    """Milliseconds since the Unix epoch."""
    return int(as_utc(value).timestamp() * 1000)


def day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return the half-open UTC interval ``[start, end)`` covering a local calendar day.

    Args:
        day: The calendar date in the given timezone.
        tz: Timezone that defines where the day begins and ends.

    Returns:
        Tuple of (start, end) as aware UTC datetimes.
    """
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)
