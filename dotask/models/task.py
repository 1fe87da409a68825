"""Task and Category models, plus wire ↔ entity mapping.

Wire payloads use the server's camelCase shape; entities are snake_case
pydantic models. The ``*_from_wire`` functions are total: missing or
unparseable fields fall back to fixed defaults instead of raising.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

# === Type aliases ===

TaskStatus = Literal["TODO", "IN_PROGRESS", "COMPLETED"]
TaskPriority = Literal["LOW", "MEDIUM", "HIGH"]

TASK_STATUSES: tuple[TaskStatus, ...] = ("TODO", "IN_PROGRESS", "COMPLETED")
TASK_PRIORITIES: tuple[TaskPriority, ...] = ("LOW", "MEDIUM", "HIGH")

DEFAULT_STATUS: TaskStatus = "TODO"
DEFAULT_PRIORITY: TaskPriority = "MEDIUM"


# === Entities ===


class Category(BaseModel):
    """A task category."""

    id: str
    name: str = ""


class Task(BaseModel):
    """A task as held in the local collection."""

    id: str
    title: str = ""
    description: str = ""
    status: TaskStatus = DEFAULT_STATUS
    priority: TaskPriority = DEFAULT_PRIORITY
    due_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    category: Category | None = None
    tags: list[str] = Field(default_factory=list)

    @property
    def category_id(self) -> str:
        return self.category.id if self.category else ""


# === Inputs ===


class CreateTaskInput(BaseModel):
    """Fields for a task creation request."""

    title: str = Field(min_length=1)
    description: str = ""
    status: TaskStatus = DEFAULT_STATUS
    priority: TaskPriority = DEFAULT_PRIORITY
    due_date: datetime | None = None
    category_id: str = ""
    tags: list[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must not be blank")
        return v

    def to_wire(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "dueDate": format_timestamp(self.due_date),
            "categoryId": self.category_id,
            "tags": list(self.tags),
        }


class UpdateTaskInput(BaseModel):
    """Fields for a task update request; unset fields are not sent."""

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    category_id: str | None = None
    tags: list[str] | None = None

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "dueDate": format_timestamp(self.due_date),
            "categoryId": self.category_id,
            "tags": list(self.tags) if self.tags is not None else None,
        }
        return {k: v for k, v in wire.items() if v is not None}


# === Mapping ===


def parse_timestamp(raw: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp string; anything else maps to None."""
    if isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def _choice(raw: Any, allowed: tuple[str, ...], default: str) -> str:
    if isinstance(raw, str):
        normalized = raw.strip().upper().replace("-", "_")
        if normalized in allowed:
            return normalized
    return default


def category_from_wire(payload: Any) -> Category:
    if not isinstance(payload, dict):
        payload = {}
    return Category(
        id=str(payload.get("id") or ""),
        name=str(payload.get("name") or ""),
    )


def task_from_wire(payload: Any) -> Task:
    """Map a wire task object onto a Task entity."""
    if not isinstance(payload, dict):
        payload = {}

    raw_category = payload.get("category")
    category = category_from_wire(raw_category) if isinstance(raw_category, dict) else None
    if category is None and payload.get("categoryId"):
        category = Category(id=str(payload["categoryId"]))

    raw_tags = payload.get("tags")
    tags = [str(t) for t in raw_tags if t is not None] if isinstance(raw_tags, list) else []

    return Task(
        id=str(payload.get("id") or ""),
        title=str(payload.get("title") or ""),
        description=str(payload.get("description") or ""),
        status=_choice(payload.get("status"), TASK_STATUSES, DEFAULT_STATUS),
        priority=_choice(payload.get("priority"), TASK_PRIORITIES, DEFAULT_PRIORITY),
        due_date=parse_timestamp(payload.get("dueDate")),
        created_at=parse_timestamp(payload.get("createdAt")),
        updated_at=parse_timestamp(payload.get("updatedAt")),
        category=category,
        tags=tags,
    )


def task_to_wire(task: Task) -> dict[str, Any]:
    """Inverse of task_from_wire, used for the local task cache."""
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "priority": task.priority,
        "dueDate": format_timestamp(task.due_date),
        "createdAt": format_timestamp(task.created_at),
        "updatedAt": format_timestamp(task.updated_at),
        "category": task.category.model_dump() if task.category else None,
        "tags": list(task.tags),
    }


def status_from_wire(raw: Any, default: TaskStatus = DEFAULT_STATUS) -> TaskStatus:
    return _choice(raw, TASK_STATUSES, default)
