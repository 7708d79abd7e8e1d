"""Pure review domain logic: steps, dispositions and the week summary."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum, IntEnum

from .clock import week_start
from .tasks import Task


class ReviewStep(IntEnum):
    """Fixed, ordered steps of a review."""

    CELEBRATE = 0
    INCOMPLETE = 1
    OVERDUE = 2
    UPCOMING = 3
    SUMMARY = 4

    @property
    def title(self) -> str:
        return self.name.capitalize()

    def next(self) -> "ReviewStep | None":
        if self is ReviewStep.SUMMARY:
            return None
        return ReviewStep(self + 1)

    def previous(self) -> "ReviewStep | None":
        if self is ReviewStep.CELEBRATE:
            return None
        return ReviewStep(self - 1)


class ReviewAction(Enum):
    """Disposition applied to a single task during triage."""

    DELETE = "delete"
    MOVE_TO_NEXT_WEEK = "next_week"
    RESCHEDULE_TO_TOMORROW = "tomorrow"
    KEEP = "keep"


@dataclass
class WeekSummary:
    """Snapshot of the week under review."""

    week_start: datetime
    week_end: datetime
    completed: list[Task] = field(default_factory=list)
    incomplete: list[Task] = field(default_factory=list)
    overdue: list[Task] = field(default_factory=list)
    upcoming: list[Task] = field(default_factory=list)
    created_count: int = 0

    @property
    def completion_rate(self) -> int:
        """Whole percent of this week's work that got done."""
        total = len(self.completed) + len(self.incomplete) + len(self.overdue)
        if total == 0:
            return 0
        return int(len(self.completed) / total * 100)


def build_week_summary(tasks: list[Task], now: datetime, upcoming_days: int = 7) -> WeekSummary:
    """
    Split tasks into the review's subsets.

    Week runs Monday 00:00 to the following Monday. Overdue means due
    before today; incomplete is everything else not yet done; upcoming is
    due within the window that starts when this week ends.

    Pure function - no I/O.
    """
    start = datetime.combine(week_start(now), datetime.min.time())
    end = start + timedelta(days=7)
    upcoming_end = end + timedelta(days=upcoming_days)

    completed = [t for t in tasks if t.is_completed and t.completed_at and start <= t.completed_at < end]
    overdue = sorted((t for t in tasks if t.is_overdue(now)), key=lambda t: t.due_date)
    incomplete = [t for t in tasks if not t.is_completed and not t.is_overdue(now)]
    upcoming = [
        t for t in tasks if not t.is_completed and t.due_date is not None and end <= t.due_date < upcoming_end
    ]
    created = sum(1 for t in tasks if t.created_at is not None and start <= t.created_at < end)

    return WeekSummary(
        week_start=start,
        week_end=end,
        completed=completed,
        incomplete=incomplete,
        overdue=overdue,
        upcoming=upcoming,
        created_count=created,
    )


@dataclass(frozen=True)
class ReviewTally:
    deleted: int = 0
    rescheduled: int = 0
    kept: int = 0

    @property
    def total(self) -> int:
        return self.deleted + self.rescheduled + self.kept
