"""Pure temporal classification of tasks - no I/O dependencies.

Scheduled time always takes precedence over due date. "Today" and
"tomorrow" mean calendar days, not 24-hour windows.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .clock import (
    format_clock_time,
    is_same_day,
    is_tomorrow,
    whole_days_between,
    whole_hours_between,
    whole_minutes_between,
)
from .tasks import Task


class UrgencyKind(Enum):
    OVERDUE = "overdue"
    DUE_NOW = "due_now"
    DUE_SOON = "due_soon"
    DUE_TONIGHT = "due_tonight"
    DUE_AT = "due_at"
    TOMORROW = "tomorrow"
    IN_DAYS = "in_days"
    THIS_WEEK = "this_week"
    FLEXIBLE = "flexible"


@dataclass(frozen=True)
class UrgencyLabel:
    """Discrete urgency tag plus its display text."""

    kind: UrgencyKind
    text: str

    def __str__(self) -> str:
        return self.text


OVERDUE = UrgencyLabel(UrgencyKind.OVERDUE, "Overdue")
DUE_NOW = UrgencyLabel(UrgencyKind.DUE_NOW, "Due now")
DUE_SOON = UrgencyLabel(UrgencyKind.DUE_SOON, "Due soon")
DUE_TONIGHT = UrgencyLabel(UrgencyKind.DUE_TONIGHT, "Due tonight")
TOMORROW = UrgencyLabel(UrgencyKind.TOMORROW, "Tomorrow")
THIS_WEEK = UrgencyLabel(UrgencyKind.THIS_WEEK, "This week")
FLEXIBLE = UrgencyLabel(UrgencyKind.FLEXIBLE, "Flexible")


def _classify_scheduled(scheduled: datetime, now: datetime) -> UrgencyLabel | None:
    if scheduled < now:
        return OVERDUE
    if is_same_day(scheduled, now):
        hours = whole_hours_between(now, scheduled)
        if hours == 0:
            return DUE_NOW
        if hours <= 2:
            return DUE_SOON
        if hours >= 18:
            return DUE_TONIGHT
        return UrgencyLabel(UrgencyKind.DUE_AT, f"Due at {format_clock_time(scheduled)}")
    if is_tomorrow(scheduled, now):
        return TOMORROW
    return None


def _classify_due(due: datetime, now: datetime) -> UrgencyLabel | None:
    if due < now and not is_same_day(due, now):
        # A due date from late yesterday may be less than 24h old; that is
        # not yet overdue and falls through to Flexible.
        if whole_days_between(due, now) > 0:
            return OVERDUE
        return None
    if is_same_day(due, now):
        return DUE_TONIGHT
    if is_tomorrow(due, now):
        return TOMORROW

    days = whole_days_between(now, due)
    if days == 1:
        return TOMORROW
    if 2 <= days <= 3:
        return UrgencyLabel(UrgencyKind.IN_DAYS, f"In {days} days")
    if 4 <= days <= 7:
        return THIS_WEEK
    return None


def classify(task: Task, now: datetime) -> UrgencyLabel:
    """
    Urgency label for a task relative to `now`.

    First matching rule wins: scheduled time (past, today, tomorrow), then
    due date (past, today, tomorrow, 2-3 days, 4-7 days), else Flexible.
    """
    if task.scheduled_time is not None:
        label = _classify_scheduled(task.scheduled_time, now)
        if label is not None:
            return label

    if task.due_date is not None:
        label = _classify_due(task.due_date, now)
        if label is not None:
            return label

    return FLEXIBLE


def short_indicator(task: Task, now: datetime) -> str | None:
    """Compact urgency text for dense layouts; None when nothing is pressing."""
    scheduled = task.scheduled_time
    if scheduled is not None:
        if scheduled < now:
            return "Overdue"
        if is_same_day(scheduled, now):
            hours = whole_hours_between(now, scheduled)
            minutes = whole_minutes_between(now, scheduled) - hours * 60
            if hours == 0 and minutes <= 30:
                return f"In {minutes}m"
            if hours <= 2:
                return f"In {hours}h"

    due = task.due_date
    if due is not None:
        if due < now and not is_same_day(due, now):
            return "Overdue"
        if is_same_day(due, now):
            return "Today"

    return None


def group_by_urgency(tasks: list[Task], now: datetime) -> dict[UrgencyKind, list[Task]]:
    """Bucket tasks by urgency kind, preserving input order within each bucket."""
    groups: dict[UrgencyKind, list[Task]] = {}
    for task in tasks:
        groups.setdefault(classify(task, now).kind, []).append(task)
    return groups
