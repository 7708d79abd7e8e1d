"""Ports - interfaces/protocols for external dependencies."""

from .task_repo import StoreMutationFailed, TaskNotFound, TaskRepository
from .clock import Clock
from .review_scheduler import ReviewScheduler

__all__ = [
    "TaskRepository",
    "StoreMutationFailed",
    "TaskNotFound",
    "Clock",
    "ReviewScheduler",
]
