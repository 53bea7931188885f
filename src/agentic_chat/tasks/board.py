from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from agentic_chat.errors import NotFoundError
from agentic_chat.storage.models import utc_now

COLUMNS = ("todo", "inProgress", "review", "completed")
PRIORITIES = ("low", "medium", "high")

COLUMN_TITLES = {
    "todo": "To Do",
    "inProgress": "In Progress",
    "review": "Review",
    "completed": "Completed",
}


def validate_column(column: str) -> str:
    if column not in COLUMNS:
        raise ValueError(f"Invalid column {column!r}; expected one of {', '.join(COLUMNS)}")
    return column


def validate_priority(priority: str | None) -> str | None:
    if priority is not None and priority not in PRIORITIES:
        raise ValueError(f"Invalid priority {priority!r}; expected one of {', '.join(PRIORITIES)}")
    return priority


@dataclass
class Task:
    id: str
    title: str
    column: str
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    priority: str | None = None
    tags: list[str] = field(default_factory=list)


class TaskBoard:
    """In-memory kanban board the assistant manages through its task tools."""

    def __init__(self, *, clock: Callable[[], datetime] = utc_now):
        self._tasks: dict[str, Task] = {}
        self._clock = clock

    def __len__(self) -> int:
        return len(self._tasks)

    def get_task(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        return task

    def create_task(
        self,
        title: str,
        column: str = "todo",
        *,
        description: str | None = None,
        priority: str | None = None,
        tags: list[str] | None = None,
    ) -> Task:
        if not title.strip():
            raise ValueError("Task title must not be empty")
        now = self._clock()
        task = Task(
            id=f"task-{uuid4().hex[:12]}",
            title=title.strip(),
            column=validate_column(column),
            created_at=now,
            updated_at=now,
            description=description,
            priority=validate_priority(priority),
            tags=list(tags or []),
        )
        self._tasks[task.id] = task
        return task

    def update_task(
        self,
        task_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        priority: str | None = None,
        tags: list[str] | None = None,
    ) -> Task:
        task = self.get_task(task_id)
        validate_priority(priority)
        if title is not None:
            if not title.strip():
                raise ValueError("Task title must not be empty")
            task.title = title.strip()
        if description is not None:
            task.description = description
        if priority is not None:
            task.priority = priority
        if tags is not None:
            task.tags = list(tags)
        task.updated_at = self._clock()
        return task

    def move_task(self, task_id: str, to_column: str, *, from_column: str | None = None) -> Task:
        task = self.get_task(task_id)
        validate_column(to_column)
        if from_column is not None and validate_column(from_column) != task.column:
            raise ValueError(f"Task {task_id} is in {task.column!r}, not {from_column!r}")
        task.column = to_column
        task.updated_at = self._clock()
        return task

    def delete_task(self, task_id: str) -> Task:
        task = self.get_task(task_id)
        del self._tasks[task_id]
        return task

    def list_tasks(self, column: str | None = None, tag: str | None = None) -> list[Task]:
        if column is not None:
            validate_column(column)
        tasks = [
            t
            for t in self._tasks.values()
            if (column is None or t.column == column) and (tag is None or tag in t.tags)
        ]
        # Board order: by column, then oldest first.
        return sorted(tasks, key=lambda t: (COLUMNS.index(t.column), t.created_at))
