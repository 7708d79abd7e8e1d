"""Configuration management for Tasky."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

TASKY_HOME = Path(os.environ.get("TASKY_HOME", Path.home() / "tasky"))
CONFIG_FILE = TASKY_HOME / "config" / "tasky.conf"
DATA_DIR = TASKY_HOME / "data"


@dataclass
class Config:
    """Tasky configuration."""

    timezone: str = "UTC"
    task_file: str = ""
    review_state_file: str = ""
    review_day: str = "Sunday"
    review_hour: int = 18
    upcoming_days: int = 7
    quick_win_minutes: int = 15

    @property
    def task_path(self) -> Path:
        if self.task_file:
            return Path(self.task_file).expanduser()
        return DATA_DIR / "tasks.json"

    @property
    def review_state_path(self) -> Path:
        if self.review_state_file:
            return Path(self.review_state_file).expanduser()
        return DATA_DIR / "review.json"


def _parse_int(key: str, value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key.upper()}: {value!r}, using {default}")
        return default


def load_config(path: Path | None = None) -> Config:
    """Load configuration from tasky.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = value.strip()

        # Handle quoted values with inline comments: "value" # comment
        if value.startswith('"') or value.startswith("'"):
            quote = value[0]
            end_quote = value.find(quote, 1)
            value = value[1:end_quote] if end_quote != -1 else value[1:]
        elif "#" in value:
            # Unquoted: strip inline comments
            value = value.split("#")[0].strip()

        match key:
            case "timezone":
                config.timezone = value
            case "task_file":
                config.task_file = value
            case "review_state_file":
                config.review_state_file = value
            case "review_day":
                config.review_day = value
            case "review_hour":
                config.review_hour = _parse_int(key, value, config.review_hour)
            case "upcoming_days":
                config.upcoming_days = _parse_int(key, value, config.upcoming_days)
            case "quick_win_minutes":
                config.quick_win_minutes = _parse_int(key, value, config.quick_win_minutes)

    return config
