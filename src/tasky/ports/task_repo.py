"""Task store interface."""

from datetime import datetime
from typing import Protocol

from tasky.core.tasks import Task


class StoreMutationFailed(Exception):
    """Raised when a delete/reschedule/create cannot be applied."""

    pass


class TaskNotFound(StoreMutationFailed):
    """Raised when a mutation names an id the store does not hold."""

    pass


class TaskRepository(Protocol):
    """Interface for reading and mutating tasks in any backend."""

    def fetch_all(self) -> list[Task]:
        """Fetch all tasks."""
        ...

    def delete(self, task_id: str) -> None:
        """Delete a task. Raises StoreMutationFailed on failure."""
        ...

    def reschedule(self, task_id: str, new_due_date: datetime) -> Task:
        """Move a task's due date. Raises StoreMutationFailed on failure."""
        ...

    def create(self, fields: dict) -> Task:
        """Create a task from field values. Raises StoreMutationFailed on failure."""
        ...
