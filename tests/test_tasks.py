"""Tests for core task logic."""

from datetime import datetime, timedelta

import pytest

from tasky.core.recurrence import WeeklyRule
from tasky.core.tasks import (
    Priority,
    Task,
    filter_due_today,
    filter_incomplete,
    filter_overdue,
    filter_upcoming,
)


# Fixtures
@pytest.fixture
def now():
    return datetime(2025, 1, 15, 10, 0)


@pytest.fixture
def sample_tasks(now):
    """Sample tasks covering various scenarios."""
    return [
        Task(id="1", title="Overdue two days", due_date=now - timedelta(days=2)),
        Task(id="2", title="Due this morning", due_date=datetime(2025, 1, 15, 8, 0)),
        Task(id="3", title="Due next week", due_date=now + timedelta(days=5)),
        Task(id="4", title="Overdue five days", due_date=now - timedelta(days=5)),
        Task(id="5", title="Done", due_date=now - timedelta(days=3), is_completed=True),
        Task(id="6", title="Undated"),
    ]


class TestPriority:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("high", Priority.HIGH),
            ("Medium", Priority.MEDIUM),
            (None, Priority.NONE),
            (2, Priority.HIGH),
            (Priority.MEDIUM, Priority.MEDIUM),
        ],
    )
    def test_parse(self, value, expected):
        assert Priority.parse(value) == expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            Priority.parse("urgent")


class TestTaskPredicates:
    def test_overdue_only_before_today(self, now):
        assert Task(id="1", title="t", due_date=now - timedelta(days=1)).is_overdue(now)
        assert not Task(id="2", title="t", due_date=datetime(2025, 1, 15, 0, 0)).is_overdue(now)

    def test_completed_never_overdue(self, now):
        task = Task(id="1", title="t", due_date=now - timedelta(days=9), is_completed=True)
        assert not task.is_overdue(now)

    def test_when_prefers_scheduled_time(self, now):
        task = Task(id="1", title="t", due_date=now, scheduled_time=now + timedelta(hours=2))
        assert task.when == now + timedelta(hours=2)

    def test_quick_win(self):
        assert Task(id="1", title="t", estimated_minutes=15).is_quick_win()
        assert not Task(id="2", title="t", estimated_minutes=16).is_quick_win()
        assert not Task(id="3", title="t").is_quick_win()

    def test_stuck_after_three_reschedules(self):
        assert Task(id="1", title="t", reschedule_count=3).is_stuck()
        assert not Task(id="2", title="t", reschedule_count=3, is_completed=True).is_stuck()

    def test_staleness_days(self, now):
        task = Task(id="1", title="t", created_at=now - timedelta(days=4, hours=5))
        assert task.staleness_days(now) == 4

    def test_days_until_due(self, now):
        assert Task(id="1", title="t", due_date=now - timedelta(days=2)).days_until_due(now) == -2
        assert Task(id="2", title="t").days_until_due(now) is None


class TestSerialization:
    def test_round_trip_keeps_recurrence(self, now):
        task = Task(
            id="abc",
            title="Gym",
            due_date=now,
            priority=Priority.HIGH,
            recurrence=WeeklyRule(days_of_week=frozenset({1, 3, 5})),
            recurrence_anchor=now,
            created_at=now,
        )
        data = task.to_dict()
        assert data["priority"] == "high"
        assert data["recurrence"] == {"unit": "week", "interval": 1, "days_of_week": [1, 3, 5]}
        assert Task.from_dict(data) == task

    def test_from_dict_defaults(self):
        task = Task.from_dict({"id": "x", "title": "Bare"})
        assert task.priority == Priority.NONE
        assert task.due_date is None
        assert task.recurrence is None

    def test_missing_created_at_stays_unknown(self, now):
        task = Task.from_dict({"id": "x", "title": "Imported"})
        assert task.created_at is None
        assert task.staleness_days(now) == 0


class TestFilters:
    def test_filter_incomplete(self, sample_tasks):
        assert "5" not in [t.id for t in filter_incomplete(sample_tasks)]

    def test_filter_overdue_oldest_first(self, sample_tasks, now):
        assert [t.id for t in filter_overdue(sample_tasks, now)] == ["4", "1"]

    def test_filter_due_today(self, sample_tasks, now):
        assert [t.id for t in filter_due_today(sample_tasks, now)] == ["2"]

    def test_filter_upcoming(self, sample_tasks, now):
        assert [t.id for t in filter_upcoming(sample_tasks, now)] == ["3"]
