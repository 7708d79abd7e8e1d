"""Pure task domain logic - no I/O dependencies."""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import IntEnum

from .clock import is_same_day, start_of_day, whole_days_between
from .recurrence import RecurrenceRule, parse_rule, rule_to_dict


class Priority(IntEnum):
    """Explicit priority tier set by the user."""

    NONE = 0
    MEDIUM = 1
    HIGH = 2

    @classmethod
    def parse(cls, value: "str | int | Priority | None") -> "Priority":
        """Accept 'high', 2, Priority.HIGH, or None."""
        if value is None:
            return cls.NONE
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown priority: {value!r}") from None
        return cls(int(value))


def _parse_dt(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


def _format_dt(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass
class Task:
    """A task record as read from the task store."""

    id: str
    title: str
    due_date: datetime | None = None
    scheduled_time: datetime | None = None
    is_completed: bool = False
    priority: Priority = Priority.NONE
    priority_score: float = 0.0
    recurrence: RecurrenceRule | None = None
    recurrence_anchor: datetime | None = None
    occurrence_count: int = 0
    created_at: datetime | None = None
    completed_at: datetime | None = None
    estimated_minutes: int = 0
    reschedule_count: int = 0
    list_name: str = ""

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None

    @property
    def when(self) -> datetime | None:
        """Scheduled time if set, otherwise due date."""
        return self.scheduled_time or self.due_date

    def is_overdue(self, now: datetime) -> bool:
        """Incomplete and due before today (a due date earlier today is not overdue)."""
        if self.is_completed or not self.due_date:
            return False
        return self.due_date < start_of_day(now)

    def is_due_today(self, now: datetime) -> bool:
        return bool(self.due_date) and is_same_day(self.due_date, now)

    def is_upcoming(self, now: datetime, days: int = 7) -> bool:
        """Due after now and within the next N days."""
        if not self.due_date:
            return False
        return now < self.due_date <= now + timedelta(days=days)

    def is_quick_win(self, threshold_minutes: int = 15) -> bool:
        return 0 < self.estimated_minutes <= threshold_minutes

    def is_stuck(self) -> bool:
        """Rescheduled 3+ times without being done."""
        return self.reschedule_count >= 3 and not self.is_completed

    def staleness_days(self, now: datetime) -> int:
        """Whole days since the task was created (never negative, 0 if unknown)."""
        if self.created_at is None:
            return 0
        return max(0, whole_days_between(self.created_at, now))

    def days_until_due(self, now: datetime) -> int | None:
        """Calendar days until due date (negative if overdue)."""
        if not self.due_date:
            return None
        return (self.due_date.date() - now.date()).days

    def with_changes(self, **changes) -> "Task":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from its JSON storage form."""
        recurrence = parse_rule(data["recurrence"]) if data.get("recurrence") else None
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            due_date=_parse_dt(data.get("due_date")),
            scheduled_time=_parse_dt(data.get("scheduled_time")),
            is_completed=bool(data.get("is_completed", False)),
            priority=Priority.parse(data.get("priority")),
            priority_score=float(data.get("priority_score", 0.0) or 0.0),
            recurrence=recurrence,
            recurrence_anchor=_parse_dt(data.get("recurrence_anchor")),
            occurrence_count=data.get("occurrence_count", 0) or 0,
            created_at=_parse_dt(data.get("created_at")),
            completed_at=_parse_dt(data.get("completed_at")),
            estimated_minutes=data.get("estimated_minutes", 0) or 0,
            reschedule_count=data.get("reschedule_count", 0) or 0,
            list_name=data.get("list_name", "") or "",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "due_date": _format_dt(self.due_date),
            "scheduled_time": _format_dt(self.scheduled_time),
            "is_completed": self.is_completed,
            "priority": self.priority.name.lower(),
            "priority_score": self.priority_score,
            "recurrence": rule_to_dict(self.recurrence) if self.recurrence else None,
            "recurrence_anchor": _format_dt(self.recurrence_anchor),
            "occurrence_count": self.occurrence_count,
            "created_at": _format_dt(self.created_at),
            "completed_at": _format_dt(self.completed_at),
            "estimated_minutes": self.estimated_minutes,
            "reschedule_count": self.reschedule_count,
            "list_name": self.list_name,
        }


def filter_incomplete(tasks: list[Task]) -> list[Task]:
    return [t for t in tasks if not t.is_completed]


def filter_overdue(tasks: list[Task], now: datetime) -> list[Task]:
    """Overdue tasks, oldest due date first."""
    overdue = [t for t in tasks if t.is_overdue(now)]
    return sorted(overdue, key=lambda t: t.due_date)


def filter_due_today(tasks: list[Task], now: datetime) -> list[Task]:
    return [t for t in tasks if not t.is_completed and t.is_due_today(now)]


def filter_upcoming(tasks: list[Task], now: datetime, days: int = 7) -> list[Task]:
    return [t for t in tasks if not t.is_completed and t.is_upcoming(now, days)]
