import datetime as dt
from zoneinfo import ZoneInfo

from loguru import logger


def resolve_timezone(name: str) -> dt.tzinfo:
    """Resolve a timezone name, falling back to UTC if invalid."""
    try:
        return ZoneInfo(name)
    except Exception:
        logger.warning("Invalid clinic timezone '{}'; defaulting to UTC", name)
        return dt.timezone.utc


def to_clinic_time(value: dt.datetime, tz: dt.tzinfo) -> dt.datetime:
    """Express ``value`` in the clinic timezone.

    Naive timestamps from the backend are already clinic wall-clock time and
    are only tagged, never shifted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def time_24h(value: dt.datetime) -> str:
    """Format ``datetime(..., 9, 5)`` → ``09:05``."""
    return value.strftime("%H:%M")


def format_time_range(start: dt.datetime, end: dt.datetime, tz: dt.tzinfo) -> str:
    """Format a span as ``HH:MM - HH:MM`` in the clinic timezone."""
    return f"{time_24h(to_clinic_time(start, tz))} - {time_24h(to_clinic_time(end, tz))}"


def start_of_day(day: dt.date, tz: dt.tzinfo) -> dt.datetime:
    return dt.datetime.combine(day, dt.time.min, tzinfo=tz)


def start_of_week(day: dt.date, week_starts_on: int = 0) -> dt.date:
    """Return the first day of the week containing ``day`` (0 = Monday)."""
    offset = (day.weekday() - week_starts_on) % 7
    return day - dt.timedelta(days=offset)


def add_months(day: dt.date, months: int) -> dt.date:
    """Shift ``day`` by whole months, clamping to the target month's length."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    if month == 12:
        next_month = dt.date(year + 1, 1, 1)
    else:
        next_month = dt.date(year, month + 1, 1)
    last_day = (next_month - dt.timedelta(days=1)).day
    return dt.date(year, month, min(day.day, last_day))
