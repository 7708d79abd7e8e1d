"""File-based review streak adapter."""

import json
import logging
from datetime import datetime
from pathlib import Path

from tasky.core.streak import StreakState, check_streak, next_review_at, record_review
from tasky.ports.clock import Clock

logger = logging.getLogger(__name__)


class FileReviewScheduler:
    """
    Review streak persisted as a small JSON file.

    Implements ReviewScheduler protocol.
    """

    def __init__(self, path: Path | str, clock: Clock, review_day: int = 7, review_hour: int = 18):
        self.path = Path(path).expanduser()
        self.clock = clock
        self.review_day = review_day
        self.review_hour = review_hour

    def _load(self) -> StreakState:
        if not self.path.exists():
            return StreakState()
        try:
            return StreakState.from_dict(json.loads(self.path.read_text()))
        except (json.JSONDecodeError, KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable review state {self.path}: {e}")
            return StreakState()

    def _save(self, state: StreakState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(state.to_dict()))

    def state(self) -> StreakState:
        """Current streak, zeroed if the user has lapsed."""
        return check_streak(self._load(), self.clock.now())

    def complete_review(self) -> StreakState:
        state = record_review(self._load(), self.clock.now())
        self._save(state)
        logger.debug(f"Review streak now {state.current} (longest {state.longest})")
        return state

    def next_review(self) -> datetime:
        return next_review_at(self.clock.now(), self.review_day, self.review_hour)
