"""JSON file task store adapter."""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path

from tasky.core.tasks import Task
from tasky.ports.task_repo import StoreMutationFailed, TaskNotFound

logger = logging.getLogger(__name__)


class JsonTaskStore:
    """
    File-based task storage.

    Implements TaskRepository protocol. All tasks live in one JSON document
    that is rewritten on every mutation.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _load(self) -> list[Task]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
            return [Task.from_dict(item) for item in data.get("tasks", [])]
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            raise StoreMutationFailed(f"Corrupt task file {self.path}: {e}") from e

    def _save(self, tasks: list[Task]) -> None:
        payload = json.dumps({"tasks": [t.to_dict() for t in tasks]}, indent=2)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload)
            tmp.replace(self.path)
        except OSError as e:
            raise StoreMutationFailed(f"Could not write {self.path}: {e}") from e
        logger.debug(f"Saved {len(tasks)} tasks to {self.path}")

    @staticmethod
    def _index(tasks: list[Task], task_id: str) -> int:
        for i, task in enumerate(tasks):
            if task.id == task_id:
                return i
        raise TaskNotFound(f"No task with id {task_id}")

    def fetch_all(self) -> list[Task]:
        """Fetch all tasks."""
        return self._load()

    def get(self, task_id: str) -> Task:
        tasks = self._load()
        return tasks[self._index(tasks, task_id)]

    def delete(self, task_id: str) -> None:
        tasks = self._load()
        del tasks[self._index(tasks, task_id)]
        self._save(tasks)

    def reschedule(self, task_id: str, new_due_date: datetime) -> Task:
        """
        Move the due date. A scheduled time on an earlier day is dropped so
        the task does not keep reading as overdue.
        """
        tasks = self._load()
        i = self._index(tasks, task_id)
        task = tasks[i]
        scheduled = task.scheduled_time
        if scheduled is not None and scheduled.date() < new_due_date.date():
            scheduled = None
        tasks[i] = task.with_changes(
            due_date=new_due_date,
            scheduled_time=scheduled,
            reschedule_count=task.reschedule_count + 1,
        )
        self._save(tasks)
        return tasks[i]

    @staticmethod
    def _new_task(fields: dict) -> Task:
        try:
            return Task(id=fields.get("id") or uuid.uuid4().hex[:8], **{k: v for k, v in fields.items() if k != "id"})
        except TypeError as e:
            raise StoreMutationFailed(f"Invalid task fields: {e}") from e

    def create(self, fields: dict) -> Task:
        tasks = self._load()
        task = self._new_task(fields)
        tasks.append(task)
        self._save(tasks)
        return task

    def complete(self, task: Task, successor_fields: dict | None = None) -> Task | None:
        """
        Store a completed task and, for a recurring one, its next instance in
        a single write. Either both land or neither does.
        """
        tasks = self._load()
        i = self._index(tasks, task.id)
        successor = self._new_task(successor_fields) if successor_fields is not None else None
        tasks[i] = task
        if successor is not None:
            tasks.append(successor)
        self._save(tasks)
        return successor

    def update(self, task: Task) -> Task:
        """Replace a stored task wholesale."""
        tasks = self._load()
        tasks[self._index(tasks, task.id)] = task
        self._save(tasks)
        return task

    def save_all(self, tasks: list[Task]) -> None:
        self._save(tasks)
