# backend/agentsalud/services/availability/times.py
"""
Time helpers shared by the availability core.

Internal representation: integer minutes since midnight.
Boundary representation: "HH:MM" (24h, zero-padded) and "YYYY-MM-DD".
"""

from datetime import date, datetime, time, timedelta, tzinfo

MINUTES_PER_DAY = 24 * 60


def time_str_to_minutes(value: str) -> int:
    """
    Convert "HH:MM" (or Postgres "HH:MM:SS") to minutes since midnight.

    "24:00" is accepted as end-of-day so a block can close at midnight.
    Raises ValueError for anything else.
    """
    if not isinstance(value, str):
        raise ValueError(f"time must be a string, got {value!r}")

    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"invalid time string: {value!r}")

    hour, minute = int(parts[0]), int(parts[1])
    if minute > 59 or (len(parts) == 3 and int(parts[2]) > 59):
        raise ValueError(f"invalid time string: {value!r}")
    if hour == 24 and minute == 0:
        return MINUTES_PER_DAY
    if hour > 23:
        raise ValueError(f"invalid time string: {value!r}")

    return hour * 60 + minute


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    if minutes < 0 or minutes > MINUTES_PER_DAY:
        raise ValueError(f"minutes out of range: {minutes}")
    hour, minute = divmod(minutes, 60)
    return f"{hour:02d}:{minute:02d}"


def parse_date(value: str | date) -> date:
    """Parse "YYYY-MM-DD" into a date. Dates pass through unchanged."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"invalid date, expected YYYY-MM-DD: {value!r}") from None


def day_of_week(target_date: date) -> int:
    """Weekday with 0 = Sunday ... 6 = Saturday."""
    return (target_date.weekday() + 1) % 7


def is_weekend(target_date: date) -> bool:
    return target_date.weekday() >= 5


def slot_instant(target_date: date, minutes: int, tz: tzinfo) -> datetime:
    """Absolute instant of a wall-clock time on target_date in tz."""
    return datetime.combine(target_date, time.min, tzinfo=tz) + timedelta(minutes=minutes)


def as_local(moment: datetime, tz: tzinfo) -> datetime:
    """
    Express moment in tz.

    Naive datetimes are taken to already be wall-clock time in tz.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def date_range(date_start: date, date_end: date) -> list[date]:
    """Dates in [date_start, date_end]; swapped bounds are normalised."""
    if date_start > date_end:
        date_start, date_end = date_end, date_start

    dates = []
    current = date_start
    while current <= date_end:
        dates.append(current)
        current += timedelta(days=1)

    return dates
