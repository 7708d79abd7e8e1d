"""Review session - drives the triage state machine against a task store.

The session seeds its working sets once from the store and never
re-queries it. Store mutations are optimistic: a failed delete or
reschedule (whatever the store raises) is logged and recorded in
`failures`, but the task still leaves the working set and the counters
still advance, so the flow never stalls. Counters are best-effort
analytics, not a durable ledger.
"""

import logging
from datetime import datetime, timedelta

from .core.clock import start_of_day
from .core.review import ReviewAction, ReviewStep, ReviewTally, WeekSummary, build_week_summary
from .core.streak import StreakState
from .core.tasks import Task
from .ports.clock import Clock
from .ports.review_scheduler import ReviewScheduler
from .ports.task_repo import TaskRepository

logger = logging.getLogger(__name__)


class ReviewSession:
    """
    Drives one review from celebrate to summary.

    Owns mutable copies of the incomplete/overdue/upcoming sets. Entries are
    only ever removed; counters only ever grow.
    """

    def __init__(
        self,
        store: TaskRepository,
        clock: Clock,
        week: WeekSummary,
        scheduler: ReviewScheduler | None = None,
    ):
        self.store = store
        self.clock = clock
        self.scheduler = scheduler
        self.week = week
        self.current_step = ReviewStep.CELEBRATE

        self.incomplete_tasks: list[Task] = list(week.incomplete)
        self.overdue_tasks: list[Task] = list(week.overdue)
        self.upcoming_tasks: list[Task] = list(week.upcoming)

        self.deleted_count = 0
        self.rescheduled_count = 0
        self.kept_count = 0
        self.failures: list[str] = []
        self._completed = False

    @classmethod
    def start(
        cls,
        store: TaskRepository,
        clock: Clock,
        scheduler: ReviewScheduler | None = None,
        upcoming_days: int = 7,
    ) -> "ReviewSession":
        """Fetch tasks once and open a session over them."""
        week = build_week_summary(store.fetch_all(), clock.now(), upcoming_days)
        logger.debug(
            f"Review started: {len(week.incomplete)} incomplete, "
            f"{len(week.overdue)} overdue, {len(week.upcoming)} upcoming"
        )
        return cls(store, clock, week, scheduler)

    # ============== Navigation ==============

    @property
    def can_go_back(self) -> bool:
        return self.current_step.previous() is not None

    @property
    def can_go_forward(self) -> bool:
        return self.current_step.next() is not None

    @property
    def is_last_step(self) -> bool:
        return self.current_step is ReviewStep.SUMMARY

    @property
    def progress(self) -> float:
        return (self.current_step + 1) / len(ReviewStep)

    def go_to_next_step(self) -> None:
        step = self.current_step.next()
        if step is not None:
            self.current_step = step

    def go_to_previous_step(self) -> None:
        step = self.current_step.previous()
        if step is not None:
            self.current_step = step

    def go_to_step(self, step: ReviewStep) -> None:
        """Jump anywhere; working sets are left as they are."""
        self.current_step = ReviewStep(step)

    # ============== Triage ==============

    @property
    def tally(self) -> ReviewTally:
        return ReviewTally(self.deleted_count, self.rescheduled_count, self.kept_count)

    def apply(self, task_id: str, action: ReviewAction) -> bool:
        """Apply an action to a task in the current step's set."""
        match self.current_step:
            case ReviewStep.INCOMPLETE:
                return self.handle_incomplete(task_id, action)
            case ReviewStep.OVERDUE:
                return self.handle_overdue(task_id, action)
        raise ValueError(f"No task actions in the {self.current_step.title} step")

    def handle_incomplete(self, task_id: str, action: ReviewAction) -> bool:
        """Dispose of an incomplete task. Keep leaves its date untouched."""
        task = self._take(self.incomplete_tasks, task_id)
        if task is None:
            return False
        self._dispose(task, action, keep_moves_to_today=False)
        return True

    def handle_overdue(self, task_id: str, action: ReviewAction) -> bool:
        """Dispose of an overdue task. Keep moves it to the start of today."""
        task = self._take(self.overdue_tasks, task_id)
        if task is None:
            return False
        self._dispose(task, action, keep_moves_to_today=True)
        return True

    def skip_incomplete(self) -> None:
        """Keep every remaining incomplete task as-is and advance."""
        self.kept_count += len(self.incomplete_tasks)
        self.incomplete_tasks.clear()
        self.go_to_next_step()

    def skip_overdue(self) -> None:
        """Move every remaining overdue task to today and advance."""
        today = start_of_day(self.clock.now())
        for task in self.overdue_tasks:
            self._reschedule(task, today)
        self.kept_count += len(self.overdue_tasks)
        self.overdue_tasks.clear()
        self.go_to_next_step()

    def complete_review(self) -> StreakState | None:
        """Finish the review and notify the scheduler once."""
        self.current_step = ReviewStep.SUMMARY
        if self._completed:
            logger.debug("Review already completed; ignoring repeat call")
            return None
        self._completed = True
        if self.scheduler is None:
            return None
        streak = self.scheduler.complete_review()
        logger.info(f"Review completed. Streak: {streak.current}")
        return streak

    # ============== Helpers ==============

    @staticmethod
    def _take(tasks: list[Task], task_id: str) -> Task | None:
        for i, task in enumerate(tasks):
            if task.id == task_id:
                return tasks.pop(i)
        return None

    def _dispose(self, task: Task, action: ReviewAction, keep_moves_to_today: bool) -> None:
        now = self.clock.now()
        match action:
            case ReviewAction.DELETE:
                self._delete(task)
                self.deleted_count += 1
            case ReviewAction.MOVE_TO_NEXT_WEEK:
                self._reschedule(task, now + timedelta(days=7))
                self.rescheduled_count += 1
            case ReviewAction.RESCHEDULE_TO_TOMORROW:
                self._reschedule(task, now + timedelta(days=1))
                self.rescheduled_count += 1
            case ReviewAction.KEEP:
                if keep_moves_to_today:
                    self._reschedule(task, start_of_day(now))
                self.kept_count += 1

    def _delete(self, task: Task) -> None:
        try:
            self.store.delete(task.id)
        except Exception as e:
            logger.warning(f"Failed to delete task {task.id}: {e}")
            self.failures.append(task.id)

    def _reschedule(self, task: Task, when: datetime) -> None:
        try:
            self.store.reschedule(task.id, when)
        except Exception as e:
            logger.warning(f"Failed to reschedule task {task.id}: {e}")
            self.failures.append(task.id)
