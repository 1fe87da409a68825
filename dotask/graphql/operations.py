"""Operation catalog — the fixed set of named GraphQL documents the client may issue.

Documents mirror the server schema (queries: tasks, task, categories, me;
mutations: task/category CRUD, auth and profile management).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

OperationKind = Literal["query", "mutation"]

_TASK_FIELDS = """
      id
      title
      description
      status
      priority
      dueDate
      createdAt
      updatedAt
      category {
        id
        name
      }
      tags
"""

_USER_FIELDS = """
      id
      name
      email
      createdAt
      updatedAt
"""


@dataclass(frozen=True)
class Operation:
    """A named request template."""

    name: str
    kind: OperationKind
    root_field: str
    document: str


GET_TASKS = Operation(
    name="GetTasks",
    kind="query",
    root_field="tasks",
    document="query GetTasks {\n  tasks {" + _TASK_FIELDS + "  }\n}",
)

GET_TASK = Operation(
    name="GetTask",
    kind="query",
    root_field="task",
    document="query GetTask($id: ID!) {\n  task(id: $id) {" + _TASK_FIELDS + "  }\n}",
)

GET_CATEGORIES = Operation(
    name="GetCategories",
    kind="query",
    root_field="categories",
    document="query GetCategories {\n  categories {\n      id\n      name\n  }\n}",
)

CREATE_TASK = Operation(
    name="CreateTask",
    kind="mutation",
    root_field="createTask",
    document=(
        "mutation CreateTask($input: CreateTaskInput!) {\n"
        "  createTask(input: $input) {" + _TASK_FIELDS + "  }\n}"
    ),
)

UPDATE_TASK = Operation(
    name="UpdateTask",
    kind="mutation",
    root_field="updateTask",
    document=(
        "mutation UpdateTask($id: ID!, $input: UpdateTaskInput!) {\n"
        "  updateTask(id: $id, input: $input) {" + _TASK_FIELDS + "  }\n}"
    ),
)

DELETE_TASK = Operation(
    name="DeleteTask",
    kind="mutation",
    root_field="deleteTask",
    document="mutation DeleteTask($id: ID!) {\n  deleteTask(id: $id)\n}",
)

UPDATE_TASK_STATUS = Operation(
    name="UpdateTaskStatus",
    kind="mutation",
    root_field="updateTaskStatus",
    document=(
        "mutation UpdateTaskStatus($id: ID!, $status: TaskStatus!) {\n"
        "  updateTaskStatus(id: $id, status: $status) {\n"
        "      id\n      status\n      updatedAt\n  }\n}"
    ),
)

CREATE_CATEGORY = Operation(
    name="CreateCategory",
    kind="mutation",
    root_field="createCategory",
    document=(
        "mutation CreateCategory($name: String!) {\n"
        "  createCategory(name: $name) {\n      id\n      name\n  }\n}"
    ),
)

UPDATE_CATEGORY = Operation(
    name="UpdateCategory",
    kind="mutation",
    root_field="updateCategory",
    document=(
        "mutation UpdateCategory($id: ID!, $name: String!) {\n"
        "  updateCategory(id: $id, name: $name) {\n      id\n      name\n  }\n}"
    ),
)

DELETE_CATEGORY = Operation(
    name="DeleteCategory",
    kind="mutation",
    root_field="deleteCategory",
    document="mutation DeleteCategory($id: ID!) {\n  deleteCategory(id: $id)\n}",
)

ME_QUERY = Operation(
    name="Me",
    kind="query",
    root_field="me",
    document="query Me {\n  me {" + _USER_FIELDS + "  }\n}",
)

LOGIN_MUTATION = Operation(
    name="Login",
    kind="mutation",
    root_field="login",
    document=(
        "mutation Login($input: LoginInput!) {\n"
        "  login(input: $input) {\n    user {" + _USER_FIELDS + "    }\n    token\n  }\n}"
    ),
)

REGISTER_MUTATION = Operation(
    name="Register",
    kind="mutation",
    root_field="register",
    document=(
        "mutation Register($input: RegisterInput!) {\n"
        "  register(input: $input) {\n    user {" + _USER_FIELDS + "    }\n    token\n  }\n}"
    ),
)

UPDATE_PROFILE_MUTATION = Operation(
    name="UpdateProfile",
    kind="mutation",
    root_field="updateProfile",
    document=(
        "mutation UpdateProfile($input: UpdateProfileInput!) {\n"
        "  updateProfile(input: $input) {" + _USER_FIELDS + "  }\n}"
    ),
)

CHANGE_PASSWORD_MUTATION = Operation(
    name="ChangePassword",
    kind="mutation",
    root_field="changePassword",
    document=(
        "mutation ChangePassword($input: ChangePasswordInput!) {\n"
        "  changePassword(input: $input)\n}"
    ),
)


CATALOG: dict[str, Operation] = {
    op.name: op
    for op in (
        GET_TASKS,
        GET_TASK,
        GET_CATEGORIES,
        CREATE_TASK,
        UPDATE_TASK,
        DELETE_TASK,
        UPDATE_TASK_STATUS,
        CREATE_CATEGORY,
        UPDATE_CATEGORY,
        DELETE_CATEGORY,
        ME_QUERY,
        LOGIN_MUTATION,
        REGISTER_MUTATION,
        UPDATE_PROFILE_MUTATION,
        CHANGE_PASSWORD_MUTATION,
    )
}


def get_operation(name: str) -> Operation:
    """Look up an operation by name.

    Raises:
        KeyError: If the name is not in the catalog.
    """
    try:
        return CATALOG[name]
    except KeyError:
        raise KeyError(f"Unknown operation: {name}") from None


def is_cataloged(operation: Operation) -> bool:
    return CATALOG.get(operation.name) == operation
