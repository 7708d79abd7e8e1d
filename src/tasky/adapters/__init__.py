"""Adapters - I/O implementations of ports."""

from .json_task_store import JsonTaskStore
from .file_review_scheduler import FileReviewScheduler
from .system_clock import FixedClock, SystemClock

__all__ = [
    "JsonTaskStore",
    "FileReviewScheduler",
    "FixedClock",
    "SystemClock",
]
