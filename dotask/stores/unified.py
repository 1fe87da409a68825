"""Unified task/category store — the client-side data-sync layer.

Each operation checks for a session, raises the loading flag, issues one
request, maps the response onto entities and splices the result into the
local collection:

  list           → replaces the whole collection
  create         → appends
  update         → replaces the element with the matching id
  delete         → removes the element with the matching id
  status change  → merges status + updated_at into the matching element
                   (appended when it is not held locally)

On failure the message is logged and stored in ``error``; the collections
are kept, except after an auth failure, which clears them. The exception is
then re-raised. No retries, no deduplication: concurrent calls race and the
last response to arrive wins.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, TypeVar

from dotask.graphql.client import GraphQLClient, root_field
from dotask.graphql.errors import AUTH_REQUIRED_MESSAGE, ClientError, error_message
from dotask.graphql.operations import (
    CREATE_CATEGORY,
    CREATE_TASK,
    DELETE_CATEGORY,
    DELETE_TASK,
    GET_CATEGORIES,
    GET_TASK,
    GET_TASKS,
    UPDATE_CATEGORY,
    UPDATE_TASK,
    UPDATE_TASK_STATUS,
    Operation,
)
from dotask.models.task import (
    TASK_STATUSES,
    Category,
    CreateTaskInput,
    Task,
    TaskStatus,
    UpdateTaskInput,
    category_from_wire,
    parse_timestamp,
    status_from_wire,
    task_from_wire,
)
from dotask.stores.auth import AuthStore
from dotask.stores.observable import Observable, Unsubscribe, derived

logger = logging.getLogger(__name__)

R = TypeVar("R")

INITIAL_LOAD_FAILED_MESSAGE = "Failed to load initial data"


@dataclass(frozen=True)
class StoreSnapshot:
    """Combined view of the store, delivered to subscribers."""

    tasks: list[Task] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    loading: bool = False
    error: str | None = None


def _upsert(tasks: list[Task], task: Task) -> list[Task]:
    """Replace the element with task.id, or append when absent."""
    if any(t.id == task.id for t in tasks):
        return [task if t.id == task.id else t for t in tasks]
    return [*tasks, task]


class TaskStore:
    """Tasks + categories mirrored from the server.

    Usage:
        store = TaskStore(client, auth)
        store.subscribe(render)
        await store.initialize_data()
        await store.create_task(CreateTaskInput(title="Write report"))
    """

    def __init__(self, client: GraphQLClient, auth: AuthStore) -> None:
        self.client = client
        self.auth = auth
        self._tasks: Observable[list[Task]] = Observable([])
        self._categories: Observable[list[Category]] = Observable([])
        self._loading: Observable[bool] = Observable(False)
        self._error: Observable[str | None] = Observable(None)
        self._in_flight = 0
        self._snapshot = derived(
            [self._tasks, self._categories, self._loading, self._error],
            lambda tasks, categories, loading, error: StoreSnapshot(
                list(tasks), list(categories), loading, error
            ),
        )
        self.auth.on_logout(self.reset)

    # === Read access ===

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks.get())

    @property
    def categories(self) -> list[Category]:
        return list(self._categories.get())

    @property
    def loading(self) -> bool:
        return self._loading.get()

    @property
    def error(self) -> str | None:
        return self._error.get()

    @property
    def snapshot(self) -> StoreSnapshot:
        return self._snapshot.get()

    def subscribe(self, callback: Callable[[StoreSnapshot], None]) -> Unsubscribe:
        return self._snapshot.subscribe(callback)

    def subscribe_tasks(self, callback: Callable[[list[Task]], None]) -> Unsubscribe:
        return self._tasks.subscribe(callback)

    def subscribe_categories(self, callback: Callable[[list[Category]], None]) -> Unsubscribe:
        return self._categories.subscribe(callback)

    def find_task(self, task_id: str) -> Task | None:
        return next((t for t in self._tasks.get() if t.id == task_id), None)

    # === Plumbing ===

    def reset(self) -> None:
        """Drop all local data and the last error."""
        self._tasks.set([])
        self._categories.set([])
        self._error.set(None)

    @contextmanager
    def _loading_scope(self) -> Iterator[None]:
        self._in_flight += 1
        self._loading.set(True)
        try:
            yield
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._loading.set(False)

    def _require_session(self, action: str) -> None:
        if not self.auth.is_authenticated:
            err = ClientError(AUTH_REQUIRED_MESSAGE, kind="auth")
            logger.error("Cannot %s: %s", action, err.message)
            self._error.set(err.message)
            raise err

    def _fail(self, action: str, exc: Exception) -> None:
        logger.error("Error %s: %s", action, exc)
        self._error.set(error_message(exc))
        if isinstance(exc, ClientError) and exc.is_auth_error:
            self._tasks.set([])
            self._categories.set([])

    async def _run(self, action: str, call: Callable[[], Awaitable[R]]) -> R:
        self._require_session(action)
        self._error.set(None)
        with self._loading_scope():
            try:
                return await call()
            except Exception as e:
                self._fail(action, e)
                raise

    @staticmethod
    def _list_field(data: dict[str, Any], operation: Operation) -> list[Any]:
        value = root_field(data, operation)
        if not isinstance(value, list):
            raise ClientError(f"{operation.name} returned a non-list {operation.root_field}", kind="malformed")
        return value

    @staticmethod
    def _object_field(data: dict[str, Any], operation: Operation) -> dict[str, Any]:
        value = root_field(data, operation)
        if not isinstance(value, dict) or not value.get("id"):
            raise ClientError(f"{operation.name} returned an incomplete {operation.root_field}", kind="malformed")
        return value

    @staticmethod
    def _confirm(data: dict[str, Any], operation: Operation, entity_id: str) -> None:
        if root_field(data, operation) is not True:
            raise ClientError(f"{operation.name} was not applied to {entity_id}", kind="server")

    def _first_category_id(self) -> str | None:
        categories = self._categories.get()
        return categories[0].id if categories else None

    # === Tasks ===

    async def load_tasks(self) -> list[Task]:
        """Replace the task collection with the server's."""

        async def call() -> list[Task]:
            data = await self.client.query(GET_TASKS, fetch_policy="network-only")
            tasks = [task_from_wire(t) for t in self._list_field(data, GET_TASKS)]
            self._tasks.set(tasks)
            return list(tasks)

        return await self._run("loading tasks", call)

    async def get_task(self, task_id: str) -> Task:
        """Fetch one task and splice it into the collection."""

        async def call() -> Task:
            data = await self.client.query(GET_TASK, {"id": task_id}, fetch_policy="network-only")
            task = task_from_wire(self._object_field(data, GET_TASK))
            self._tasks.update(lambda tasks: _upsert(tasks, task))
            return task

        return await self._run("loading task", call)

    async def create_task(self, task_input: CreateTaskInput) -> Task:
        """Create a task; an empty category falls back to the first known one."""

        async def call() -> Task:
            payload = task_input
            if not payload.category_id:
                fallback = self._first_category_id()
                if fallback is None:
                    raise ClientError(
                        "Cannot create task without a category. Please create a category first",
                        kind="validation",
                    )
                payload = payload.model_copy(update={"category_id": fallback})

            data = await self.client.mutate(CREATE_TASK, {"input": payload.to_wire()})
            task = task_from_wire(self._object_field(data, CREATE_TASK))
            self._tasks.update(lambda tasks: [*tasks, task])
            return task

        return await self._run("creating task", call)

    async def update_task(self, task_id: str, updates: UpdateTaskInput) -> Task:
        """Update a task; only the element with ``task_id`` is replaced."""

        async def call() -> Task:
            payload = updates
            if payload.category_id == "":
                payload = payload.model_copy(update={"category_id": self._first_category_id()})

            data = await self.client.mutate(UPDATE_TASK, {"id": task_id, "input": payload.to_wire()})
            task = task_from_wire(self._object_field(data, UPDATE_TASK))
            self._tasks.update(lambda tasks: [task if t.id == task_id else t for t in tasks])
            return task

        return await self._run("updating task", call)

    async def delete_task(self, task_id: str) -> bool:
        async def call() -> bool:
            data = await self.client.mutate(DELETE_TASK, {"id": task_id})
            self._confirm(data, DELETE_TASK, task_id)
            self._tasks.update(lambda tasks: [t for t in tasks if t.id != task_id])
            return True

        return await self._run("deleting task", call)

    async def update_task_status(self, task_id: str, status: TaskStatus) -> Task:
        """Change a task's status; the local element keeps its other fields."""

        async def call() -> Task:
            if status not in TASK_STATUSES:
                raise ClientError(f"Unknown task status: {status}", kind="validation")

            data = await self.client.mutate(UPDATE_TASK_STATUS, {"id": task_id, "status": status})
            partial = self._object_field(data, UPDATE_TASK_STATUS)
            changes = {
                "status": status_from_wire(partial.get("status"), default=status),
                "updated_at": parse_timestamp(partial.get("updatedAt")) or datetime.now(timezone.utc),
            }

            current = self.find_task(task_id)
            base = current if current is not None else task_from_wire(partial)
            merged = base.model_copy(update=changes)
            self._tasks.update(lambda tasks: _upsert(tasks, merged))
            return merged

        return await self._run("updating task status", call)

    # === Categories ===

    async def load_categories(self) -> list[Category]:
        """Replace the category collection with the server's."""

        async def call() -> list[Category]:
            data = await self.client.query(GET_CATEGORIES, fetch_policy="network-only")
            categories = [category_from_wire(c) for c in self._list_field(data, GET_CATEGORIES)]
            self._categories.set(categories)
            return list(categories)

        return await self._run("loading categories", call)

    async def create_category(self, name: str) -> Category:
        async def call() -> Category:
            if not name.strip():
                raise ClientError("Category name must not be empty", kind="validation")
            data = await self.client.mutate(CREATE_CATEGORY, {"name": name.strip()})
            category = category_from_wire(self._object_field(data, CREATE_CATEGORY))
            self._categories.update(lambda cats: [*cats, category])
            return category

        return await self._run("creating category", call)

    async def update_category(self, category_id: str, name: str) -> Category:
        async def call() -> Category:
            if not name.strip():
                raise ClientError("Category name must not be empty", kind="validation")
            data = await self.client.mutate(UPDATE_CATEGORY, {"id": category_id, "name": name.strip()})
            category = category_from_wire(self._object_field(data, UPDATE_CATEGORY))
            self._categories.update(
                lambda cats: [category if c.id == category_id else c for c in cats]
            )
            return category

        return await self._run("updating category", call)

    async def delete_category(self, category_id: str) -> bool:
        """Delete a category that no local task references."""

        async def call() -> bool:
            in_use = sum(1 for t in self._tasks.get() if t.category_id == category_id)
            if in_use:
                raise ClientError(
                    f"Cannot delete category: {in_use} task(s) still use it",
                    kind="validation",
                )
            data = await self.client.mutate(DELETE_CATEGORY, {"id": category_id})
            self._confirm(data, DELETE_CATEGORY, category_id)
            self._categories.update(lambda cats: [c for c in cats if c.id != category_id])
            return True

        return await self._run("deleting category", call)

    # === Bootstrap ===

    async def initialize_data(self) -> bool:
        """Load tasks and categories together. Never raises.

        Returns True when both loads succeeded.
        """
        results = await asyncio.gather(
            self.load_tasks(), self.load_categories(), return_exceptions=True
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            logger.error("Error initializing data: %s", failures[0])
            self._error.set(INITIAL_LOAD_FAILED_MESSAGE)
            return False
        return True
