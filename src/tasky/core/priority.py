"""Pure priority scoring and ranking - no I/O dependencies."""

from datetime import datetime

from .clock import is_same_day, is_tomorrow
from .tasks import Priority, Task

URGENCY_WEIGHT = 3
IMPORTANCE_WEIGHT = 2
QUICK_WIN_WEIGHT = 1
STALENESS_WEIGHT = 1

IMPORTANCE_POINTS = {Priority.HIGH: 30.0, Priority.MEDIUM: 15.0, Priority.NONE: 0.0}
QUICK_WIN_POINTS = 10.0
STALE_AFTER_DAYS = 3
MAX_STALENESS_POINTS = 20.0


def urgency_points(task: Task, now: datetime) -> float:
    """100 overdue, 50 today, 25 tomorrow, else 0. Scheduled time is checked first."""
    scheduled = task.scheduled_time
    if scheduled is not None:
        if scheduled < now:
            return 100.0
        if is_same_day(scheduled, now):
            return 50.0
        if is_tomorrow(scheduled, now):
            return 25.0

    due = task.due_date
    if due is not None:
        if due < now and not is_same_day(due, now):
            return 100.0
        if is_same_day(due, now):
            return 50.0
        if is_tomorrow(due, now):
            return 25.0

    return 0.0


def staleness_points(task: Task, now: datetime) -> float:
    """Two points per day past the third day since creation, capped at 20."""
    days = task.staleness_days(now)
    if days <= STALE_AFTER_DAYS:
        return 0.0
    return min((days - STALE_AFTER_DAYS) * 2.0, MAX_STALENESS_POINTS)


def compute_priority_score(task: Task, now: datetime, quick_win_minutes: int = 15) -> float:
    """
    Score = urgency x 3 + importance x 2 + quick win x 1 + staleness x 1.

    Pure function - no I/O.
    """
    score = urgency_points(task, now) * URGENCY_WEIGHT
    score += IMPORTANCE_POINTS[task.priority] * IMPORTANCE_WEIGHT
    if task.is_quick_win(quick_win_minutes):
        score += QUICK_WIN_POINTS * QUICK_WIN_WEIGHT
    score += staleness_points(task, now) * STALENESS_WEIGHT
    return score


def refresh_scores(tasks: list[Task], now: datetime, quick_win_minutes: int = 15) -> list[Task]:
    """Copies of tasks with recomputed scores; completed tasks are returned unchanged."""
    return [
        t if t.is_completed else t.with_changes(priority_score=compute_priority_score(t, now, quick_win_minutes))
        for t in tasks
    ]


def rank(tasks: list[Task]) -> list[Task]:
    """
    Total order, most urgent first.

    Keys: priority_score desc, explicit priority desc, date asc (scheduled
    time, else due date; undated last). Python's sort is stable, so full
    ties keep their input order. Completion is not considered here.
    """

    def sort_key(t: Task) -> tuple:
        when = t.when
        # Negate for descending; undated tasks sort after dated ones
        return (-t.priority_score, -int(t.priority), when is None, when or datetime.min)

    return sorted(tasks, key=sort_key)


def top(tasks: list[Task], n: int = 3) -> list[Task]:
    return rank(tasks)[:n]
