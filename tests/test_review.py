"""Tests for the weekly review flow."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from tasky.adapters.json_task_store import JsonTaskStore
from tasky.adapters.system_clock import FixedClock
from tasky.core.review import ReviewAction, ReviewStep, ReviewTally, build_week_summary
from tasky.core.streak import StreakState
from tasky.core.tasks import Task
from tasky.ports.task_repo import StoreMutationFailed
from tasky.review import ReviewSession


@pytest.fixture
def now():
    # Wednesday; the week under review starts Monday the 13th
    return datetime(2025, 1, 15, 10, 0)


@pytest.fixture
def clock(now):
    return FixedClock(now)


@pytest.fixture
def store(tmp_path):
    return JsonTaskStore(tmp_path / "tasks.json")


@pytest.fixture
def overdue_tasks(now):
    return [
        Task(id="a", title="File taxes", due_date=now - timedelta(days=3), created_at=now),
        Task(id="b", title="Call dentist", due_date=now - timedelta(days=2), created_at=now),
        Task(id="c", title="Fix bike", due_date=now - timedelta(days=1), created_at=now),
    ]


@pytest.fixture
def mixed_tasks(now):
    return [
        Task(id="done", title="Shipped", is_completed=True, completed_at=datetime(2025, 1, 14), created_at=now),
        Task(id="old", title="Old", is_completed=True, completed_at=datetime(2025, 1, 5), created_at=now),
        Task(id="late", title="Late", due_date=datetime(2025, 1, 12), created_at=now),
        Task(id="morning", title="Morning", due_date=datetime(2025, 1, 15, 8, 0), created_at=now),
        Task(id="undated", title="Someday", created_at=now - timedelta(days=30)),
        Task(id="next", title="Next week", due_date=datetime(2025, 1, 22), created_at=now),
        Task(id="far", title="Far", due_date=datetime(2025, 2, 10), created_at=now),
    ]


class TestReviewStep:
    def test_order(self):
        assert [s.title for s in ReviewStep] == ["Celebrate", "Incomplete", "Overdue", "Upcoming", "Summary"]

    def test_next_and_previous(self):
        assert ReviewStep.CELEBRATE.next() == ReviewStep.INCOMPLETE
        assert ReviewStep.SUMMARY.next() is None
        assert ReviewStep.OVERDUE.previous() == ReviewStep.INCOMPLETE
        assert ReviewStep.CELEBRATE.previous() is None


class TestBuildWeekSummary:
    def test_splits_subsets(self, mixed_tasks, now):
        week = build_week_summary(mixed_tasks, now)

        assert week.week_start == datetime(2025, 1, 13)
        assert week.week_end == datetime(2025, 1, 20)
        assert [t.id for t in week.completed] == ["done"]
        assert [t.id for t in week.overdue] == ["late"]
        assert [t.id for t in week.incomplete] == ["morning", "undated", "next", "far"]
        assert [t.id for t in week.upcoming] == ["next"]
        assert week.created_count == 6

    def test_completion_rate(self, mixed_tasks, now):
        assert build_week_summary(mixed_tasks, now).completion_rate == 16

    def test_empty_week(self, now):
        week = build_week_summary([], now)
        assert week.completion_rate == 0
        assert week.overdue == []

    def test_overdue_sorted_oldest_first(self, overdue_tasks, now):
        week = build_week_summary(list(reversed(overdue_tasks)), now)
        assert [t.id for t in week.overdue] == ["a", "b", "c"]


class TestNavigation:
    def test_bounds(self, store, clock):
        session = ReviewSession.start(store, clock)
        assert not session.can_go_back
        session.go_to_previous_step()
        assert session.current_step == ReviewStep.CELEBRATE

        session.go_to_step(ReviewStep.SUMMARY)
        assert session.is_last_step
        assert not session.can_go_forward
        session.go_to_next_step()
        assert session.current_step == ReviewStep.SUMMARY
        assert session.progress == 1.0

    def test_jumping_keeps_working_sets(self, store, clock, overdue_tasks):
        store.save_all(overdue_tasks)
        session = ReviewSession.start(store, clock)
        session.go_to_step(ReviewStep.SUMMARY)
        session.go_to_step(ReviewStep.OVERDUE)
        assert len(session.overdue_tasks) == 3


class TestOverdueTriage:
    def test_delete_tomorrow_keep(self, store, clock, now, overdue_tasks):
        store.save_all(overdue_tasks)
        session = ReviewSession.start(store, clock)
        session.go_to_step(ReviewStep.OVERDUE)

        assert session.apply("a", ReviewAction.DELETE)
        assert session.apply("b", ReviewAction.RESCHEDULE_TO_TOMORROW)
        assert session.apply("c", ReviewAction.KEEP)

        assert (session.deleted_count, session.rescheduled_count, session.kept_count) == (1, 1, 1)
        assert session.overdue_tasks == []

        stored = {t.id: t for t in store.fetch_all()}
        assert "a" not in stored
        assert stored["b"].due_date == now + timedelta(days=1)
        assert stored["c"].due_date == datetime(2025, 1, 15)

    def test_move_to_next_week(self, store, clock, now, overdue_tasks):
        store.save_all(overdue_tasks)
        session = ReviewSession.start(store, clock)
        session.handle_overdue("a", ReviewAction.MOVE_TO_NEXT_WEEK)
        assert store.get("a").due_date == now + timedelta(days=7)

    def test_skip_moves_everything_to_today(self, store, clock, overdue_tasks):
        store.save_all(overdue_tasks)
        session = ReviewSession.start(store, clock)
        session.go_to_step(ReviewStep.OVERDUE)

        session.skip_overdue()

        assert session.current_step == ReviewStep.UPCOMING
        assert session.kept_count == 3
        assert all(t.due_date == datetime(2025, 1, 15) for t in store.fetch_all())

    def test_unknown_task_is_a_no_op(self, store, clock, overdue_tasks):
        store.save_all(overdue_tasks)
        session = ReviewSession.start(store, clock)
        assert not session.handle_overdue("zzz", ReviewAction.DELETE)
        assert session.tally.total == 0
        assert len(session.overdue_tasks) == 3

    def test_same_task_handled_once(self, store, clock, overdue_tasks):
        store.save_all(overdue_tasks)
        session = ReviewSession.start(store, clock)
        assert session.handle_overdue("a", ReviewAction.KEEP)
        assert not session.handle_overdue("a", ReviewAction.KEEP)
        assert session.kept_count == 1


class TestIncompleteTriage:
    def test_keep_leaves_store_untouched(self, clock, now):
        store = MagicMock()
        store.fetch_all.return_value = [Task(id="x", title="Open", created_at=now)]
        session = ReviewSession.start(store, clock)

        session.handle_incomplete("x", ReviewAction.KEEP)

        store.reschedule.assert_not_called()
        store.delete.assert_not_called()
        assert session.kept_count == 1

    def test_skip_keeps_rest(self, store, clock, mixed_tasks):
        store.save_all(mixed_tasks)
        session = ReviewSession.start(store, clock)
        session.go_to_next_step()
        session.handle_incomplete("far", ReviewAction.DELETE)

        session.skip_incomplete()

        assert session.current_step == ReviewStep.OVERDUE
        assert session.incomplete_tasks == []
        assert session.kept_count == 3
        assert session.deleted_count == 1

    def test_apply_outside_triage_steps(self, store, clock):
        session = ReviewSession.start(store, clock)
        with pytest.raises(ValueError):
            session.apply("x", ReviewAction.KEEP)


class TestSession:
    def test_store_fetched_once(self, clock, now, overdue_tasks):
        store = MagicMock()
        store.fetch_all.return_value = overdue_tasks
        session = ReviewSession.start(store, clock)

        session.handle_overdue("a", ReviewAction.KEEP)
        session.skip_overdue()

        store.fetch_all.assert_called_once()

    def test_counters_cover_every_task(self, store, clock, mixed_tasks, overdue_tasks):
        store.save_all(mixed_tasks + overdue_tasks)
        session = ReviewSession.start(store, clock)
        total = len(session.incomplete_tasks) + len(session.overdue_tasks)

        session.go_to_next_step()
        session.apply("morning", ReviewAction.RESCHEDULE_TO_TOMORROW)
        session.skip_incomplete()
        session.apply("late", ReviewAction.DELETE)
        session.skip_overdue()

        assert session.tally.total == total

    def test_failed_mutation_still_advances(self, clock, now, overdue_tasks):
        store = MagicMock()
        store.fetch_all.return_value = overdue_tasks
        store.delete.side_effect = StoreMutationFailed("disk full")
        store.reschedule.side_effect = OSError("read-only")
        session = ReviewSession.start(store, clock)

        assert session.handle_overdue("a", ReviewAction.DELETE)
        assert session.handle_overdue("b", ReviewAction.RESCHEDULE_TO_TOMORROW)

        assert session.deleted_count == 1
        assert session.rescheduled_count == 1
        assert [t.id for t in session.overdue_tasks] == ["c"]
        assert session.failures == ["a", "b"]

    def test_unexpected_store_error_still_counted(self, clock, now, overdue_tasks):
        store = MagicMock()
        store.fetch_all.return_value = overdue_tasks
        store.delete.side_effect = RuntimeError("backend down")
        store.reschedule.side_effect = RuntimeError("backend down")
        session = ReviewSession.start(store, clock)

        assert session.handle_overdue("a", ReviewAction.DELETE)
        assert session.handle_overdue("b", ReviewAction.KEEP)
        session.skip_overdue()

        assert session.tally == ReviewTally(deleted=1, rescheduled=0, kept=2)
        assert session.overdue_tasks == []
        assert session.failures == ["a", "b", "c"]

    def test_complete_review_notifies_once(self, store, clock, now):
        scheduler = MagicMock()
        scheduler.complete_review.return_value = StreakState(current=2, longest=2, last_review=now)
        session = ReviewSession.start(store, clock, scheduler)

        assert session.complete_review().current == 2
        assert session.complete_review() is None

        scheduler.complete_review.assert_called_once()
        assert session.current_step == ReviewStep.SUMMARY

    def test_complete_review_without_scheduler(self, store, clock):
        session = ReviewSession.start(store, clock)
        assert session.complete_review() is None
        assert session.is_last_step
