"""Pure recurrence rule evaluation - no I/O dependencies.

A rule is one of a closed set of frozen dataclasses. Calendar rules are
evaluated against an anchor (the first occurrence of the series);
AfterCompletionRule only ever advances from a completion timestamp.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Union

from .clock import (
    add_months,
    format_clock_time,
    last_day_of_month,
    month_index,
    week_start,
    weekday_number,
)

if TYPE_CHECKING:
    from .tasks import Task

WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
ORDINAL_NAMES = {1: "first", 2: "second", 3: "third", 4: "fourth", 5: "fifth", -1: "last"}

# Upper bound on months/years scanned when a relative rule rarely matches
# (e.g. "fifth Friday every 7 months").
_MAX_PERIODS = 1200


class InvalidRule(ValueError):
    """Raised when a recurrence definition is malformed."""

    pass


def _check_interval(interval: int) -> None:
    if not isinstance(interval, int) or interval < 1:
        raise InvalidRule(f"interval must be a positive integer, got {interval!r}")


@dataclass(frozen=True)
class _CalendarRule:
    interval: int = 1
    end_date: date | None = None
    max_occurrences: int = 0

    def __post_init__(self):
        _check_interval(self.interval)
        if self.max_occurrences < 0:
            raise InvalidRule(f"max_occurrences must be >= 0, got {self.max_occurrences}")


@dataclass(frozen=True)
class DailyRule(_CalendarRule):
    """Every N days."""

    unit = "day"


@dataclass(frozen=True)
class WeeklyRule(_CalendarRule):
    """Every N weeks, on the listed ISO weekdays (or the anchor's weekday)."""

    days_of_week: frozenset[int] = field(default_factory=frozenset)
    unit = "week"

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "days_of_week", frozenset(self.days_of_week))
        bad = [d for d in self.days_of_week if not isinstance(d, int) or not 1 <= d <= 7]
        if bad:
            raise InvalidRule(f"days_of_week must be within 1..7, got {sorted(bad)}")


@dataclass(frozen=True)
class MonthlyDayRule(_CalendarRule):
    """Every N months on a fixed day, clamped to short months."""

    day_of_month: int = 1
    unit = "month"

    def __post_init__(self):
        super().__post_init__()
        if not 1 <= self.day_of_month <= 31:
            raise InvalidRule(f"day_of_month must be within 1..31, got {self.day_of_month}")


@dataclass(frozen=True)
class MonthlyWeekdayRule(_CalendarRule):
    """Every N months on the Nth (or Nth-from-last) weekday, e.g. first Monday."""

    weekday: int = 1
    ordinal: int = 1
    unit = "month"

    def __post_init__(self):
        super().__post_init__()
        if not 1 <= self.weekday <= 7:
            raise InvalidRule(f"weekday must be within 1..7, got {self.weekday}")
        if self.ordinal == 0 or not -5 <= self.ordinal <= 5:
            raise InvalidRule(f"ordinal must be within -5..-1 or 1..5, got {self.ordinal}")


@dataclass(frozen=True)
class YearlyRule(_CalendarRule):
    """Every N years on the anchor's month and day."""

    unit = "year"


@dataclass(frozen=True)
class AfterCompletionRule:
    """Next instance falls N days after the previous one was completed."""

    interval: int = 1
    unit = "afterCompletion"

    def __post_init__(self):
        _check_interval(self.interval)


CalendarRule = Union[DailyRule, WeeklyRule, MonthlyDayRule, MonthlyWeekdayRule, YearlyRule]
RecurrenceRule = Union[CalendarRule, AfterCompletionRule]


# ============== Occurrence tests ==============


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def _monthly_day_in(rule: MonthlyDayRule, year: int, month: int) -> date:
    return date(year, month, min(rule.day_of_month, last_day_of_month(year, month)))


def _nth_weekday_in(weekday: int, ordinal: int, year: int, month: int) -> date | None:
    """The ordinal-th ISO weekday of a month, or None if the month has no such day."""
    last = last_day_of_month(year, month)
    if ordinal > 0:
        first = date(year, month, 1)
        offset = (weekday - weekday_number(first)) % 7
        day = 1 + offset + (ordinal - 1) * 7
    else:
        final = date(year, month, last)
        offset = (weekday_number(final) - weekday) % 7
        day = last - offset - (-ordinal - 1) * 7
    if 1 <= day <= last:
        return date(year, month, day)
    return None


def _yearly_day_in(anchor: date, year: int) -> date:
    return date(year, anchor.month, min(anchor.day, last_day_of_month(year, anchor.month)))


def occurs_on(rule: RecurrenceRule, day: date | datetime, anchor: date | datetime) -> bool:
    """
    Does the series anchored at `anchor` have an occurrence on `day`?

    Dates before the anchor never match. AfterCompletionRule has no calendar
    meaning and raises InvalidRule.
    """
    if isinstance(rule, AfterCompletionRule):
        raise InvalidRule("after-completion rules cannot be evaluated against calendar dates")

    day = _as_date(day)
    anchor = _as_date(anchor)
    if day < anchor:
        return False

    match rule:
        case DailyRule():
            return (day - anchor).days % rule.interval == 0
        case WeeklyRule():
            weeks = (week_start(day) - week_start(anchor)).days // 7
            if weeks % rule.interval != 0:
                return False
            weekdays = rule.days_of_week or {weekday_number(anchor)}
            return weekday_number(day) in weekdays
        case MonthlyDayRule():
            if (month_index(day) - month_index(anchor)) % rule.interval != 0:
                return False
            return day == _monthly_day_in(rule, day.year, day.month)
        case MonthlyWeekdayRule():
            if (month_index(day) - month_index(anchor)) % rule.interval != 0:
                return False
            return day == _nth_weekday_in(rule.weekday, rule.ordinal, day.year, day.month)
        case YearlyRule():
            if (day.year - anchor.year) % rule.interval != 0:
                return False
            return day == _yearly_day_in(anchor, day.year)
    raise InvalidRule(f"unsupported rule type: {type(rule).__name__}")


# ============== Next occurrence ==============


def _next_date(rule: CalendarRule, start: date, anchor: date) -> date | None:
    """First occurrence on or after `start` (start >= anchor)."""
    match rule:
        case DailyRule():
            remainder = (start - anchor).days % rule.interval
            return start if remainder == 0 else start + timedelta(days=rule.interval - remainder)
        case WeeklyRule():
            for offset in range(7 * rule.interval + 7):
                candidate = start + timedelta(days=offset)
                if occurs_on(rule, candidate, anchor):
                    return candidate
            return None
        case MonthlyDayRule() | MonthlyWeekdayRule():
            skew = (month_index(start) - month_index(anchor)) % rule.interval
            month = add_months(start.replace(day=1), (rule.interval - skew) % rule.interval)
            for _ in range(_MAX_PERIODS):
                if isinstance(rule, MonthlyDayRule):
                    candidate = _monthly_day_in(rule, month.year, month.month)
                else:
                    candidate = _nth_weekday_in(rule.weekday, rule.ordinal, month.year, month.month)
                if candidate is not None and candidate >= start:
                    return candidate
                month = add_months(month, rule.interval)
            return None
        case YearlyRule():
            skew = (start.year - anchor.year) % rule.interval
            year = start.year + (rule.interval - skew) % rule.interval
            for _ in range(_MAX_PERIODS):
                candidate = _yearly_day_in(anchor, year)
                if candidate >= start:
                    return candidate
                year += rule.interval
            return None
    raise InvalidRule(f"unsupported rule type: {type(rule).__name__}")


def next_occurrence(
    rule: RecurrenceRule,
    after: datetime,
    anchor: datetime | None = None,
) -> datetime | None:
    """
    Next occurrence strictly after `after`.

    Calendar rules: first matching day after `after`'s day, keeping the
    anchor's time of day (anchor defaults to `after`). Returns None once the
    rule's end_date has passed.

    AfterCompletionRule: exactly `after + interval days`; the anchor is
    ignored because the series is completion-driven.

    Pure and deterministic: the same inputs always give the same result.
    """
    if isinstance(rule, AfterCompletionRule):
        return after + timedelta(days=rule.interval)

    anchor = anchor or after
    start = max(after.date() + timedelta(days=1), anchor.date())
    found = _next_date(rule, start, anchor.date())
    if found is None:
        return None
    if rule.end_date is not None and found > _as_date(rule.end_date):
        return None
    return datetime.combine(found, anchor.time())


def occurrences_between(
    rule: CalendarRule,
    anchor: datetime,
    start: date,
    end: date,
) -> list[date]:
    """All calendar occurrences within [start, end], inclusive."""
    if isinstance(rule, AfterCompletionRule):
        raise InvalidRule("after-completion rules cannot be evaluated against calendar dates")

    results = []
    cursor = max(_as_date(start), anchor.date())
    limit = _as_date(end)
    if rule.end_date is not None:
        limit = min(limit, _as_date(rule.end_date))
    while cursor <= limit:
        found = _next_date(rule, cursor, anchor.date())
        if found is None or found > limit:
            break
        results.append(found)
        cursor = found + timedelta(days=1)
    return results


def regenerate(task: "Task", completed_at: datetime) -> dict | None:
    """
    Field values for the next instance of a completed recurring task.

    Returns a mapping with due_date/scheduled_time/occurrence_count, or None
    when the task does not recur or its series has ended.
    """
    rule = task.recurrence
    if rule is None:
        return None

    count = task.occurrence_count + 1
    if getattr(rule, "max_occurrences", 0) and count >= rule.max_occurrences:
        return None

    base = task.scheduled_time or task.due_date
    if isinstance(rule, AfterCompletionRule):
        next_at = next_occurrence(rule, completed_at)
        if base is not None:
            next_at = datetime.combine(next_at.date(), base.time())
    else:
        if base is None:
            base = datetime.combine(completed_at.date(), time.min)
        next_at = next_occurrence(rule, base, anchor=task.recurrence_anchor or base)
        if next_at is None:
            return None

    fields = {"occurrence_count": count, "due_date": None, "scheduled_time": None}
    if task.due_date is not None:
        fields["due_date"] = datetime.combine(next_at.date(), task.due_date.time())
    if task.scheduled_time is not None:
        fields["scheduled_time"] = datetime.combine(next_at.date(), task.scheduled_time.time())
    if task.due_date is None and task.scheduled_time is None:
        fields["due_date"] = next_at
    return fields


# ============== Description ==============


def _every(interval: int, singular: str, plural: str) -> str:
    return f"Every {singular}" if interval == 1 else f"Every {interval} {plural}"


def describe(rule: RecurrenceRule) -> str:
    """Human-readable summary, e.g. 'Every 2 weeks on Mon, Wed'."""
    parts: list[str] = []

    match rule:
        case DailyRule():
            parts.append(_every(rule.interval, "day", "days"))
        case WeeklyRule():
            parts.append(_every(rule.interval, "week", "weeks"))
            days = sorted(rule.days_of_week)
            if len(days) == 7:
                pass
            elif days == [1, 2, 3, 4, 5]:
                parts.append("on weekdays")
            elif days == [6, 7]:
                parts.append("on weekends")
            elif days:
                parts.append("on " + ", ".join(WEEKDAY_NAMES[d - 1] for d in days))
        case MonthlyDayRule():
            parts.append(_every(rule.interval, "month", "months"))
            parts.append(f"on day {rule.day_of_month}")
        case MonthlyWeekdayRule():
            parts.append(_every(rule.interval, "month", "months"))
            ordinal = ORDINAL_NAMES.get(rule.ordinal, f"#{rule.ordinal}")
            parts.append(f"on the {ordinal} {WEEKDAY_NAMES[rule.weekday - 1]}")
        case YearlyRule():
            parts.append(_every(rule.interval, "year", "years"))
        case AfterCompletionRule():
            unit = "day" if rule.interval == 1 else "days"
            parts.append(f"{rule.interval} {unit} after completion")

    end_date = getattr(rule, "end_date", None)
    if end_date is not None:
        parts.append(f"until {end_date.strftime('%b')} {end_date.day}, {end_date.year}")
    elif getattr(rule, "max_occurrences", 0):
        parts.append(f"for {rule.max_occurrences} times")

    return " ".join(parts)


# ============== Persistence form ==============


def parse_rule(data: dict) -> RecurrenceRule:
    """
    Build a rule from its flat persisted form.

    Keys: unit (day|week|month|year|afterCompletion), interval, days_of_week,
    day_of_month, weekday, ordinal, end_date (ISO date), max_occurrences.
    """
    unit = data.get("unit")
    interval = data.get("interval", 1)
    end_raw = data.get("end_date")
    try:
        end_date = date.fromisoformat(end_raw[:10]) if end_raw else None
    except (TypeError, ValueError) as e:
        raise InvalidRule(f"invalid end_date: {end_raw!r}") from e
    common = {
        "interval": interval,
        "end_date": end_date,
        "max_occurrences": data.get("max_occurrences", 0) or 0,
    }

    match unit:
        case "day":
            return DailyRule(**common)
        case "week":
            return WeeklyRule(days_of_week=frozenset(data.get("days_of_week") or ()), **common)
        case "month":
            absolute = bool(data.get("day_of_month"))
            relative = data.get("weekday") is not None or data.get("ordinal") is not None
            if absolute and relative:
                raise InvalidRule("monthly rule cannot set both day_of_month and weekday/ordinal")
            if absolute:
                return MonthlyDayRule(day_of_month=data["day_of_month"], **common)
            if relative:
                if data.get("weekday") is None or data.get("ordinal") is None:
                    raise InvalidRule("relative monthly rule needs both weekday and ordinal")
                return MonthlyWeekdayRule(weekday=data["weekday"], ordinal=data["ordinal"], **common)
            raise InvalidRule("monthly rule needs day_of_month or weekday/ordinal")
        case "year":
            return YearlyRule(**common)
        case "afterCompletion":
            return AfterCompletionRule(interval=interval)
    raise InvalidRule(f"unknown recurrence unit: {unit!r}")


def rule_to_dict(rule: RecurrenceRule) -> dict:
    """Inverse of parse_rule."""
    data: dict = {"unit": rule.unit, "interval": rule.interval}
    match rule:
        case WeeklyRule():
            data["days_of_week"] = sorted(rule.days_of_week)
        case MonthlyDayRule():
            data["day_of_month"] = rule.day_of_month
        case MonthlyWeekdayRule():
            data["weekday"] = rule.weekday
            data["ordinal"] = rule.ordinal
    end_date = getattr(rule, "end_date", None)
    if end_date is not None:
        data["end_date"] = end_date.isoformat()
    if getattr(rule, "max_occurrences", 0):
        data["max_occurrences"] = rule.max_occurrences
    return data


def format_next(rule: RecurrenceRule, after: datetime, anchor: datetime | None = None) -> str:
    """One-line 'next: Tue Mar 3, 9:00 AM' preview, or 'ended'."""
    upcoming = next_occurrence(rule, after, anchor)
    if upcoming is None:
        return "ended"
    return f"next: {upcoming.strftime('%a %b')} {upcoming.day}, {format_clock_time(upcoming)}"
