"""Pure review streak bookkeeping - no I/O dependencies."""

from dataclasses import dataclass, replace
from datetime import datetime, time, timedelta

from .clock import whole_days_between

STREAK_WINDOW_DAYS = 7
STREAK_RESET_DAYS = 14

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


@dataclass(frozen=True)
class StreakState:
    """Consecutive-week review streak."""

    current: int = 0
    longest: int = 0
    last_review: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "current": self.current,
            "longest": self.longest,
            "last_review": self.last_review.isoformat() if self.last_review else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StreakState":
        last = data.get("last_review")
        return cls(
            current=int(data.get("current", 0)),
            longest=int(data.get("longest", 0)),
            last_review=datetime.fromisoformat(last) if last else None,
        )


def record_review(state: StreakState, now: datetime) -> StreakState:
    """
    Register a finished review.

    A review within 7 days of the previous one continues the streak;
    anything later (or a first review) starts again at 1.
    """
    if state.last_review is not None and whole_days_between(state.last_review, now) <= STREAK_WINDOW_DAYS:
        current = state.current + 1
    else:
        current = 1
    return StreakState(current=current, longest=max(state.longest, current), last_review=now)


def check_streak(state: StreakState, now: datetime) -> StreakState:
    """Zero the current streak when more than two weeks have passed without a review."""
    if state.last_review is None:
        return state
    if whole_days_between(state.last_review, now) > STREAK_RESET_DAYS:
        return replace(state, current=0)
    return state


def parse_weekday(name: str) -> int:
    """'Sunday' -> 7 (ISO numbering)."""
    try:
        return WEEKDAYS.index(name.strip().lower()) + 1
    except ValueError:
        raise ValueError(f"Unknown weekday: {name!r}") from None


def next_review_at(now: datetime, review_day: int, review_hour: int) -> datetime:
    """Next instant strictly after now that falls on review_day (ISO) at review_hour:00."""
    days_ahead = (review_day - now.isoweekday()) % 7
    candidate = datetime.combine(now.date() + timedelta(days=days_ahead), time(review_hour))
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate
