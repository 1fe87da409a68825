"""Entity, input and mapping models for tasks, categories and users."""

from dotask.models.task import (
    Category,
    CreateTaskInput,
    Task,
    TaskPriority,
    TaskStatus,
    UpdateTaskInput,
    category_from_wire,
    task_from_wire,
)
from dotask.models.user import (
    AuthPayload,
    ChangePasswordInput,
    LoginInput,
    RegisterInput,
    UpdateProfileInput,
    User,
    user_from_wire,
)

__all__ = [
    "AuthPayload",
    "Category",
    "ChangePasswordInput",
    "CreateTaskInput",
    "LoginInput",
    "RegisterInput",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "UpdateProfileInput",
    "UpdateTaskInput",
    "User",
    "category_from_wire",
    "task_from_wire",
    "user_from_wire",
]
