"""Pure calendar helpers - no I/O dependencies.

All datetimes are naive local wall-clock values. Day comparisons use
calendar-day equality rather than 24-hour deltas.
"""

import calendar
from datetime import date, datetime, time, timedelta


def start_of_day(dt: datetime) -> datetime:
    """Midnight at the beginning of dt's calendar day."""
    return datetime.combine(dt.date(), time.min)


def is_same_day(a: datetime, b: datetime) -> bool:
    return a.date() == b.date()


def is_tomorrow(a: datetime, relative_to: datetime) -> bool:
    """True if a falls on the calendar day after relative_to."""
    return a.date() == relative_to.date() + timedelta(days=1)


def is_yesterday(a: datetime, relative_to: datetime) -> bool:
    return a.date() == relative_to.date() - timedelta(days=1)


def weekday_number(dt: date) -> int:
    """ISO weekday: Monday=1 .. Sunday=7."""
    return dt.isoweekday()


def days_between(a: date, b: date) -> int:
    """Calendar days from a to b (negative if b is earlier)."""
    if isinstance(a, datetime):
        a = a.date()
    if isinstance(b, datetime):
        b = b.date()
    return (b - a).days


def whole_days_between(a: datetime, b: datetime) -> int:
    """Elapsed 24-hour periods from a to b, truncated toward zero."""
    return int((b - a).total_seconds() / 86400)


def whole_hours_between(a: datetime, b: datetime) -> int:
    """Elapsed hours from a to b, truncated toward zero."""
    return int((b - a).total_seconds() / 3600)


def whole_minutes_between(a: datetime, b: datetime) -> int:
    return int((b - a).total_seconds() / 60)


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_index(d: date) -> int:
    """Months since year 0, for interval arithmetic across year boundaries."""
    return d.year * 12 + (d.month - 1)


def add_months(d: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    index = month_index(d) + months
    year, month = divmod(index, 12)
    month += 1
    return d.replace(year=year, month=month, day=min(d.day, last_day_of_month(year, month)))


def week_start(d: date) -> date:
    """Monday of d's ISO week."""
    if isinstance(d, datetime):
        d = d.date()
    return d - timedelta(days=d.weekday())


def format_clock_time(dt: datetime) -> str:
    """Format as '3:05 PM' without platform-specific strftime flags."""
    hour = dt.hour % 12 or 12
    suffix = "AM" if dt.hour < 12 else "PM"
    return f"{hour}:{dt.minute:02d} {suffix}"
