"""Shared test fixtures for DoTask client tests."""

import os
import sys
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

# Ensure the project root is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("STORAGE_PATH", "")

from dotask.graphql.client import GraphQLClient
from dotask.models.user import User
from dotask.navigation import Navigator
from dotask.storage import ClientStorage
from dotask.stores.auth import AuthState, AuthStore
from dotask.stores.unified import TaskStore

GRAPHQL_URL = "http://test.local/query"
LOGOUT_URL = "http://test.local/api/logout"


def make_mock_response(status_code: int = 200, json_data=None, json_error: bool = False):
    """Create a MagicMock response (httpx Response methods are synchronous)."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.cookies = httpx.Cookies()
    if json_error:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = json_data
    return resp


def patch_async_client(target: str, response=None, side_effect=None):
    """Patch httpx.AsyncClient in ``target`` as an async context manager.

    ``post`` returns ``response`` or raises ``side_effect``.
    """
    from unittest.mock import patch

    mock_instance = AsyncMock()
    if side_effect is not None:
        mock_instance.post.side_effect = side_effect
    else:
        mock_instance.post.return_value = response
    mock_instance.__aenter__.return_value = mock_instance
    mock_instance.__aexit__.return_value = False
    return patch(f"{target}.httpx.AsyncClient", return_value=mock_instance)


def wire_task(task_id: str = "t1", **overrides) -> dict:
    """A task object as the server sends it."""
    data = {
        "id": task_id,
        "title": f"Task {task_id}",
        "description": "",
        "status": "TODO",
        "priority": "MEDIUM",
        "dueDate": "2026-11-01T09:00:00Z",
        "createdAt": "2026-10-01T08:00:00Z",
        "updatedAt": "2026-10-01T08:00:00Z",
        "category": {"id": "c1", "name": "Work"},
        "tags": [],
    }
    data.update(overrides)
    return data


def wire_user(**overrides) -> dict:
    data = {
        "id": "u1",
        "name": "Ada",
        "email": "ada@example.com",
        "createdAt": "2026-01-01T00:00:00Z",
        "updatedAt": "2026-01-01T00:00:00Z",
    }
    data.update(overrides)
    return data


def sign_in(auth: AuthStore) -> None:
    """Put an AuthStore into the authenticated state without a request."""
    auth._state.set(
        AuthState(
            user=User(id="u1", name="Ada", email="ada@example.com"),
            status="authenticated",
            is_authenticated=True,
            is_loading=False,
        )
    )


@pytest.fixture
def storage() -> ClientStorage:
    """In-memory client storage."""
    return ClientStorage()


@pytest.fixture
def client(storage) -> GraphQLClient:
    return GraphQLClient(GRAPHQL_URL, storage=storage, timeout=5)


@pytest.fixture
def navigator() -> Navigator:
    return Navigator()


@pytest.fixture
def auth(client, navigator) -> AuthStore:
    return AuthStore(client, navigator, logout_url=LOGOUT_URL)


@pytest.fixture
def store(client, auth) -> TaskStore:
    """TaskStore with a signed-in session and mocked transport calls."""
    sign_in(auth)
    client.query = AsyncMock()
    client.mutate = AsyncMock()
    return TaskStore(client, auth)
