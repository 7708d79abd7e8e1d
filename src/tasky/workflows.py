"""Shared workflow layer between the CLI and library callers.

Wires configuration, adapters and the functional core together.
"""

import logging
from datetime import datetime

from .adapters.file_review_scheduler import FileReviewScheduler
from .adapters.json_task_store import JsonTaskStore
from .adapters.system_clock import FixedClock, SystemClock
from .config import Config
from .core.priority import rank, refresh_scores
from .core.recurrence import RecurrenceRule, describe, parse_rule, regenerate
from .core.streak import parse_weekday
from .core.tasks import Priority, Task, filter_incomplete
from .core.urgency import classify, short_indicator
from .ports.clock import Clock
from .review import ReviewSession

logger = logging.getLogger(__name__)


def get_clock(config: Config, as_of: datetime | None = None) -> Clock:
    """Pinned clock when replaying a moment, system clock otherwise."""
    if as_of is not None:
        return FixedClock(as_of)
    return SystemClock(config.timezone)


def get_store(config: Config) -> JsonTaskStore:
    return JsonTaskStore(config.task_path)


def get_scheduler(config: Config, clock: Clock) -> FileReviewScheduler:
    return FileReviewScheduler(
        config.review_state_path,
        clock,
        review_day=parse_weekday(config.review_day),
        review_hour=config.review_hour,
    )


def ranked_tasks(store: JsonTaskStore, now: datetime, config: Config, include_completed: bool = False) -> list[Task]:
    """Fetch, rescore and rank tasks, most urgent first."""
    tasks = store.fetch_all()
    if not include_completed:
        tasks = filter_incomplete(tasks)
    return rank(refresh_scores(tasks, now, config.quick_win_minutes))


def build_rule(
    unit: str | None,
    every: int = 1,
    on_days: list[int] | None = None,
    day_of_month: int | None = None,
    weekday: int | None = None,
    ordinal: int | None = None,
) -> RecurrenceRule | None:
    """Build a recurrence rule from CLI-style options. Raises InvalidRule."""
    if unit is None:
        return None
    return parse_rule(
        {
            "unit": unit,
            "interval": every,
            "days_of_week": on_days or [],
            "day_of_month": day_of_month,
            "weekday": weekday,
            "ordinal": ordinal,
        }
    )


def add_task(
    store: JsonTaskStore,
    clock: Clock,
    title: str,
    due_date: datetime | None = None,
    scheduled_time: datetime | None = None,
    priority: Priority = Priority.NONE,
    recurrence: RecurrenceRule | None = None,
    estimated_minutes: int = 0,
    list_name: str = "",
) -> Task:
    now = clock.now()
    anchor = scheduled_time or due_date
    return store.create(
        {
            "title": title,
            "due_date": due_date,
            "scheduled_time": scheduled_time,
            "priority": priority,
            "recurrence": recurrence,
            "recurrence_anchor": anchor if recurrence is not None else None,
            "estimated_minutes": estimated_minutes,
            "list_name": list_name,
            "created_at": now,
        }
    )


def complete_task(store: JsonTaskStore, clock: Clock, task_id: str) -> tuple[Task, Task | None]:
    """
    Mark a task done. Recurring tasks spawn their next instance.

    Returns (completed task, next instance or None).
    """
    task = store.get(task_id)
    if task.is_completed:
        return task, None

    now = clock.now()
    done = task.with_changes(is_completed=True, completed_at=now)

    fields = regenerate(task, now)
    if fields is None:
        store.complete(done)
        return done, None

    successor = store.complete(
        done,
        {
            "title": task.title,
            "priority": task.priority,
            "recurrence": task.recurrence,
            "recurrence_anchor": task.recurrence_anchor,
            "estimated_minutes": task.estimated_minutes,
            "list_name": task.list_name,
            "created_at": now,
            **fields,
        },
    )
    logger.info(f"Recurring task {task.id} regenerated as {successor.id} ({describe(task.recurrence)})")
    return done, successor


def remove_task(store: JsonTaskStore, task_id: str) -> Task:
    task = store.get(task_id)
    store.delete(task_id)
    return task


def start_review(config: Config, store: JsonTaskStore, clock: Clock) -> ReviewSession:
    scheduler = get_scheduler(config, clock)
    return ReviewSession.start(store, clock, scheduler, upcoming_days=config.upcoming_days)


def format_task_line(task: Task, now: datetime) -> str:
    """Format a task as a single list line: id, priority, title, urgency."""
    marker = "!" * int(task.priority)
    indicator = short_indicator(task, now)
    urgency = str(classify(task, now))
    if indicator and indicator != urgency:
        urgency = f"{urgency}, {indicator}"
    repeat = f" ↻ {describe(task.recurrence)}" if task.recurrence else ""
    return f"{task.id:8} [{marker:2}] {task.title} ({urgency}){repeat}"
