"""Functional core - pure business logic with no I/O."""

from .tasks import Task, Priority, filter_incomplete, filter_overdue
from .urgency import UrgencyKind, UrgencyLabel, classify, short_indicator
from .recurrence import (
    AfterCompletionRule,
    DailyRule,
    InvalidRule,
    MonthlyDayRule,
    MonthlyWeekdayRule,
    WeeklyRule,
    YearlyRule,
    next_occurrence,
    occurs_on,
    parse_rule,
)
from .priority import compute_priority_score, rank
from .review import ReviewAction, ReviewStep, WeekSummary, build_week_summary
from .streak import StreakState, record_review

__all__ = [
    # Tasks
    "Task",
    "Priority",
    "filter_incomplete",
    "filter_overdue",
    # Urgency
    "UrgencyKind",
    "UrgencyLabel",
    "classify",
    "short_indicator",
    # Recurrence
    "AfterCompletionRule",
    "DailyRule",
    "InvalidRule",
    "MonthlyDayRule",
    "MonthlyWeekdayRule",
    "WeeklyRule",
    "YearlyRule",
    "next_occurrence",
    "occurs_on",
    "parse_rule",
    # Priority
    "compute_priority_score",
    "rank",
    # Review
    "ReviewAction",
    "ReviewStep",
    "WeekSummary",
    "build_week_summary",
    # Streak
    "StreakState",
    "record_review",
]
