"""Calendar date helpers shared by the recurrence and adherence code.

All rule evaluation works on calendar days in a single reference timezone.
Timestamps are converted to that zone and the time of day is dropped.
"""

from datetime import UTC, date, datetime, timedelta, tzinfo

from dateutil import parser as dateutil_parser

from habitshare.core.config import Constants, WeekStart


def to_calendar_date(value: date | datetime | str, tz: tzinfo = UTC) -> date:
    """Reduce a date, datetime or ISO string to a calendar date in the reference timezone.

    Naive datetimes are taken to already be in the reference timezone.

    Args:
        value: Date-like value
        tz: Reference timezone

    Returns:
        Calendar date

    Raises:
        ValueError: If a string cannot be parsed as a date
    """
    if isinstance(value, str):
        try:
            value = dateutil_parser.isoparse(value.strip())
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Not an ISO date: {value!r}") from e

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()

    return value


def to_aware_datetime(value: datetime | str, tz: tzinfo = UTC) -> datetime:
    """Parse a timestamp and attach the reference timezone when it is naive."""
    if isinstance(value, str):
        try:
            value = dateutil_parser.isoparse(value.strip())
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Not an ISO timestamp: {value!r}") from e
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value


def get_week_start_date(day: date, week_start: WeekStart = WeekStart.MONDAY) -> date:
    """Get the first day of the week containing a date.

    Args:
        day: Any calendar date
        week_start: Which weekday opens the week

    Returns:
        Monday (or Sunday) on or before ``day``
    """
    # weekday(): 0 = Monday, 6 = Sunday
    offset = day.weekday() if week_start == WeekStart.MONDAY else (day.weekday() + 1) % 7
    return day - timedelta(days=offset)


def week_window(day: date, week_start: WeekStart = WeekStart.MONDAY) -> tuple[date, date]:
    """Inclusive (first, last) dates of the week containing ``day``."""
    first = get_week_start_date(day, week_start)
    return first, first + timedelta(days=Constants.DAYS_PER_WEEK - 1)


def month_distance(start: date, end: date) -> int:
    """Number of calendar months from ``start``'s month to ``end``'s month (may be negative)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def days_between(start: date, end: date) -> int:
    """Signed day difference ``end - start``."""
    return (end - start).days
