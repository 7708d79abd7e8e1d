"""Clock adapters."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo


class SystemClock:
    """Wall clock in a configured timezone, returned as naive local time."""

    def __init__(self, timezone: str = "UTC"):
        self.timezone = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self.timezone).replace(tzinfo=None)


class FixedClock:
    """A clock pinned to one instant; useful for replays and tests."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, delta: timedelta) -> None:
        self.instant += delta
