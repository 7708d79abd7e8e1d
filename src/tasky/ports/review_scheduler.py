"""Review scheduling interface."""

from typing import Protocol

from tasky.core.streak import StreakState


class ReviewScheduler(Protocol):
    """Streak bookkeeping notified when a review finishes."""

    def complete_review(self) -> StreakState:
        """Record a finished review and return the updated streak."""
        ...

    def state(self) -> StreakState:
        """Current streak without recording anything."""
        ...
