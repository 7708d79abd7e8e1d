"""Clock interface."""

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    """Source of the current wall-clock time."""

    def now(self) -> datetime:
        """Current local time as a naive datetime."""
        ...
