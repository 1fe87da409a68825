"""Offline task list persisted under the ``tasks`` client-storage key.

Works without a server: ids and timestamps are generated locally and every
change is written back to storage. Seeded with two sample tasks when the
key is empty.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from dotask.models.task import (
    Category,
    CreateTaskInput,
    Task,
    TaskStatus,
    UpdateTaskInput,
    status_from_wire,
    task_from_wire,
    task_to_wire,
)
from dotask.storage import TASKS_KEY, ClientStorage
from dotask.stores.observable import Observable, Unsubscribe

logger = logging.getLogger(__name__)


def _sample_tasks(now: datetime) -> list[Task]:
    return [
        Task(
            id="1",
            title="Complete project setup",
            description="Set up the client and GraphQL server project structure",
            status="IN_PROGRESS",
            priority="HIGH",
            due_date=now + timedelta(days=1),
            created_at=now,
            updated_at=now,
            category=Category(id="development", name="Development"),
            tags=["setup", "project"],
        ),
        Task(
            id="2",
            title="Design task interface",
            description="Create a clean and intuitive interface for managing tasks",
            status="TODO",
            priority="MEDIUM",
            due_date=now + timedelta(days=2),
            created_at=now,
            updated_at=now,
            category=Category(id="design", name="Design"),
            tags=["ui", "ux"],
        ),
    ]


class OfflineTaskStore:
    """Local-only task collection."""

    def __init__(self, storage: ClientStorage, now: Callable[[], datetime] | None = None) -> None:
        self.storage = storage
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._tasks: Observable[list[Task]] = Observable(self._load())

    def _load(self) -> list[Task]:
        raw = self.storage.get_item(TASKS_KEY)
        if not raw:
            return _sample_tasks(self._now())
        try:
            items = json.loads(raw)
        except ValueError:
            logger.warning("Stored task list is not valid JSON, using sample tasks")
            return _sample_tasks(self._now())
        if not isinstance(items, list):
            return _sample_tasks(self._now())
        return [task_from_wire(item) for item in items]

    def _persist(self, tasks: list[Task]) -> list[Task]:
        self.storage.set_item(TASKS_KEY, json.dumps([task_to_wire(t) for t in tasks]))
        return tasks

    def _apply(self, fn: Callable[[list[Task]], list[Task]]) -> None:
        self._tasks.update(lambda tasks: self._persist(fn(tasks)))

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks.get())

    def subscribe(self, callback: Callable[[list[Task]], None]) -> Unsubscribe:
        return self._tasks.subscribe(callback)

    def add(self, task_input: CreateTaskInput) -> Task:
        now = self._now()
        category = (
            Category(id=task_input.category_id, name=task_input.category_id)
            if task_input.category_id
            else None
        )
        task = Task(
            id=str(uuid4()),
            title=task_input.title,
            description=task_input.description,
            status=task_input.status,
            priority=task_input.priority,
            due_date=task_input.due_date,
            created_at=now,
            updated_at=now,
            category=category,
            tags=list(task_input.tags),
        )
        self._apply(lambda tasks: [*tasks, task])
        return task

    def update_task(self, task_id: str, updates: UpdateTaskInput) -> Task | None:
        changes: dict[str, Any] = updates.model_dump(exclude_none=True)
        category_id = changes.pop("category_id", None)
        if category_id:
            changes["category"] = Category(id=category_id, name=category_id)
        changes["updated_at"] = self._now()
        return self._replace(task_id, changes)

    def update_status(self, task_id: str, status: TaskStatus) -> Task | None:
        return self._replace(
            task_id,
            {"status": status_from_wire(status), "updated_at": self._now()},
        )

    def delete(self, task_id: str) -> None:
        self._apply(lambda tasks: [t for t in tasks if t.id != task_id])

    def reset(self) -> None:
        """Back to the sample tasks."""
        self._apply(lambda _tasks: _sample_tasks(self._now()))

    def _replace(self, task_id: str, changes: dict[str, Any]) -> Task | None:
        current = next((t for t in self._tasks.get() if t.id == task_id), None)
        if current is None:
            return None
        updated = current.model_copy(update=changes)
        self._apply(lambda tasks: [updated if t.id == task_id else t for t in tasks])
        return updated
