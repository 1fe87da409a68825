"""Tests for the unified task/category store — transport calls are mocked."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from conftest import make_mock_response, patch_async_client, wire_task

from dotask.graphql.errors import ClientError
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
)
from dotask.models.task import Category, CreateTaskInput, UpdateTaskInput
from dotask.stores.auth import AuthState
from dotask.stores.unified import INITIAL_LOAD_FAILED_MESSAGE, TaskStore


async def _load(store, *task_ids):
    store.client.query.return_value = {"tasks": [wire_task(i) for i in task_ids]}
    return await store.load_tasks()


async def _load_categories(store, *categories):
    store.client.query.return_value = {"categories": [{"id": c, "name": c.upper()} for c in categories]}
    return await store.load_categories()


# === Loading flag ===


class TestLoadingFlag:
    @pytest.mark.asyncio
    async def test_true_only_during_call(self, store):
        observed = []

        async def fake_query(*args, **kwargs):
            observed.append(store.loading)
            return {"tasks": []}

        store.client.query.side_effect = fake_query
        assert store.loading is False
        await store.load_tasks()
        assert observed == [True]
        assert store.loading is False

    @pytest.mark.asyncio
    async def test_cleared_after_failure(self, store):
        store.client.query.side_effect = ClientError("down", kind="transport")
        with pytest.raises(ClientError):
            await store.load_tasks()
        assert store.loading is False

    @pytest.mark.asyncio
    async def test_overlapping_calls(self, store):
        """Loading stays on until every call finishes; the last response wins."""
        release_first = asyncio.Event()
        calls = 0

        async def fake_query(*args, **kwargs):
            nonlocal calls
            calls += 1
            if calls == 1:
                await release_first.wait()
                return {"tasks": [wire_task("first")]}
            return {"tasks": [wire_task("second")]}

        store.client.query.side_effect = fake_query

        first = asyncio.ensure_future(store.load_tasks())
        await asyncio.sleep(0)  # first call is now blocked in the query
        second = await store.load_tasks()

        assert [t.id for t in second] == ["second"]
        assert [t.id for t in store.tasks] == ["second"]
        assert store.loading is True

        release_first.set()
        await first

        assert store.loading is False
        assert [t.id for t in store.tasks] == ["first"]

    @pytest.mark.asyncio
    async def test_gathered_calls_resolving_in_reverse(self, store):
        release_first = asyncio.Event()
        calls = 0

        async def fake_query(*args, **kwargs):
            nonlocal calls
            calls += 1
            if calls == 1:
                await release_first.wait()
                return {"tasks": [wire_task("first")]}
            release_first.set()
            return {"tasks": [wire_task("second")]}

        store.client.query.side_effect = fake_query
        trace = []
        store._loading.subscribe(trace.append)

        await asyncio.gather(store.load_tasks(), store.load_tasks())

        # off at rest, on while either call runs, off once both finished
        assert trace[0] is False
        assert trace[-1] is False
        assert trace.count(False) == 2
        assert [t.id for t in store.tasks] == ["first"]

    @pytest.mark.asyncio
    async def test_subscribers_see_loading_transitions(self, store):
        seen = []
        store.subscribe(lambda snap: seen.append(snap.loading))
        store.client.query.return_value = {"tasks": []}
        await store.load_tasks()
        assert seen[0] is False
        assert True in seen
        assert seen[-1] is False


# === Tasks ===


class TestLoadTasks:
    @pytest.mark.asyncio
    async def test_replaces_collection(self, store):
        await _load(store, "a", "b")
        result = await _load(store, "c")
        assert [t.id for t in store.tasks] == ["c"]
        assert [t.id for t in result] == ["c"]

    @pytest.mark.asyncio
    async def test_uses_network_only(self, store):
        await _load(store, "a")
        assert store.client.query.call_args.args[0] is GET_TASKS
        assert store.client.query.call_args.kwargs["fetch_policy"] == "network-only"

    @pytest.mark.asyncio
    async def test_failure_keeps_collection_and_sets_error(self, store):
        await _load(store, "a", "b")
        store.client.query.side_effect = ClientError("server exploded", kind="server")
        with pytest.raises(ClientError):
            await store.load_tasks()
        assert [t.id for t in store.tasks] == ["a", "b"]
        assert store.error == "server exploded"

    @pytest.mark.asyncio
    async def test_partial_response_is_an_error(self, store):
        await _load(store, "a")
        store.client.query.return_value = {"tasks": None}
        with pytest.raises(ClientError) as exc:
            await store.load_tasks()
        assert exc.value.kind == "malformed"
        assert [t.id for t in store.tasks] == ["a"]
        assert store.error

    @pytest.mark.asyncio
    async def test_auth_failure_clears_collections(self, store):
        await _load_categories(store, "c1")
        await _load(store, "a")
        store.client.query.side_effect = ClientError("authentication required", kind="auth")
        with pytest.raises(ClientError):
            await store.load_tasks()
        assert store.tasks == []
        assert store.categories == []

    @pytest.mark.asyncio
    async def test_error_cleared_on_next_success(self, store):
        store.client.query.side_effect = ClientError("down", kind="transport")
        with pytest.raises(ClientError):
            await store.load_tasks()
        store.client.query.side_effect = None
        await _load(store, "a")
        assert store.error is None


class TestAnonymous:
    @pytest.mark.asyncio
    async def test_load_rejected_without_request(self, store, auth):
        await _load(store, "a", "b")
        store.client.query.reset_mock()

        auth._state.set(AuthState(is_loading=False))
        with pytest.raises(ClientError) as exc:
            await store.load_tasks()

        assert exc.value.kind == "auth"
        store.client.query.assert_not_called()
        assert [t.id for t in store.tasks] == ["a", "b"]
        assert store.loading is False
        assert store.error == "authentication required"

    @pytest.mark.asyncio
    async def test_every_mutation_requires_session(self, client, auth):
        client.query = AsyncMock()
        client.mutate = AsyncMock()
        store = TaskStore(client, auth)

        calls = [
            store.create_task(CreateTaskInput(title="x", category_id="c1")),
            store.update_task("t1", UpdateTaskInput(title="y")),
            store.delete_task("t1"),
            store.update_task_status("t1", "COMPLETED"),
            store.load_categories(),
            store.create_category("Home"),
            store.update_category("c1", "Home"),
            store.delete_category("c1"),
            store.get_task("t1"),
        ]
        for call in calls:
            with pytest.raises(ClientError):
                await call
        client.query.assert_not_called()
        client.mutate.assert_not_called()


class TestCreateTask:
    @pytest.mark.asyncio
    async def test_empty_category_resolves_to_first(self, store):
        await _load_categories(store, "c1")
        store.client.mutate.return_value = {"createTask": wire_task("new")}

        await store.create_task(CreateTaskInput(title="Task new", category_id=""))

        operation, variables = store.client.mutate.call_args.args
        assert operation is CREATE_TASK
        assert variables["input"]["categoryId"] == "c1"

    @pytest.mark.asyncio
    async def test_no_categories_is_validation_error(self, store):
        with pytest.raises(ClientError) as exc:
            await store.create_task(CreateTaskInput(title="x"))
        assert exc.value.kind == "validation"
        store.client.mutate.assert_not_called()
        assert "category" in store.error

    @pytest.mark.asyncio
    async def test_appends_and_differs_only_by_server_fields(self, store):
        await _load(store, "a")
        task_input = CreateTaskInput(
            title="Task new", description="d", priority="HIGH", category_id="c1", tags=["x"]
        )
        store.client.mutate.return_value = {
            "createTask": wire_task("new", description="d", priority="HIGH", tags=["x"], dueDate=None)
        }

        task = await store.create_task(task_input)

        assert [t.id for t in store.tasks] == ["a", "new"]
        assert task.title == task_input.title
        assert task.description == task_input.description
        assert task.status == task_input.status
        assert task.priority == task_input.priority
        assert task.category_id == task_input.category_id
        assert task.tags == task_input.tags
        assert task.id == "new"
        assert task.created_at is not None

    @pytest.mark.asyncio
    async def test_failure_keeps_collection(self, store):
        await _load(store, "a")
        store.client.mutate.side_effect = ClientError("no such category", kind="server")
        with pytest.raises(ClientError):
            await store.create_task(CreateTaskInput(title="x", category_id="zz"))
        assert [t.id for t in store.tasks] == ["a"]
        assert store.error == "no such category"


class TestUpdateTask:
    @pytest.mark.asyncio
    async def test_only_matching_element_changes(self, store):
        await _load(store, "a", "b", "c")
        before = store.tasks
        store.client.mutate.return_value = {"updateTask": wire_task("b", title="Renamed")}

        await store.update_task("b", UpdateTaskInput(title="Renamed"))

        after = store.tasks
        assert after[0] is before[0]
        assert after[2] is before[2]
        assert after[1].title == "Renamed"
        operation, variables = store.client.mutate.call_args.args
        assert operation is UPDATE_TASK
        assert variables == {"id": "b", "input": {"title": "Renamed"}}

    @pytest.mark.asyncio
    async def test_empty_category_resolves_or_drops(self, store):
        await _load(store, "a")
        store.client.mutate.return_value = {"updateTask": wire_task("a")}

        await store.update_task("a", UpdateTaskInput(category_id=""))
        assert "categoryId" not in store.client.mutate.call_args.args[1]["input"]

        await _load_categories(store, "c7")
        await store.update_task("a", UpdateTaskInput(category_id=""))
        assert store.client.mutate.call_args.args[1]["input"]["categoryId"] == "c7"


class TestDeleteTask:
    @pytest.mark.asyncio
    async def test_removes_only_that_task(self, store):
        await _load(store, "a", "b", "c")
        before = store.tasks
        store.client.mutate.return_value = {"deleteTask": True}

        assert await store.delete_task("b") is True

        assert [t.id for t in store.tasks] == ["a", "c"]
        assert store.tasks[0] is before[0]
        assert store.client.mutate.call_args.args == (DELETE_TASK, {"id": "b"})

    @pytest.mark.asyncio
    async def test_server_refusal_keeps_task(self, store):
        await _load(store, "a")
        store.client.mutate.return_value = {"deleteTask": False}
        with pytest.raises(ClientError) as exc:
            await store.delete_task("a")
        assert exc.value.kind == "server"
        assert [t.id for t in store.tasks] == ["a"]


class TestUpdateTaskStatus:
    @pytest.mark.asyncio
    async def test_merges_status_and_timestamp(self, store):
        await _load(store, "a", "b")
        before = store.tasks
        store.client.mutate.return_value = {
            "updateTaskStatus": {"id": "a", "status": "COMPLETED", "updatedAt": "2026-10-19T12:00:00Z"}
        }

        task = await store.update_task_status("a", "COMPLETED")

        assert task.status == "COMPLETED"
        assert task.updated_at.isoformat() == "2026-10-19T12:00:00+00:00"
        assert task.title == before[0].title
        assert task.category == before[0].category
        assert store.tasks[0] == task
        assert store.tasks[1] is before[1]
        assert store.client.mutate.call_args.args == (
            UPDATE_TASK_STATUS,
            {"id": "a", "status": "COMPLETED"},
        )

    @pytest.mark.asyncio
    async def test_missing_timestamp_uses_now(self, store):
        await _load(store, "a")
        old = store.tasks[0].updated_at
        store.client.mutate.return_value = {"updateTaskStatus": {"id": "a", "status": "IN_PROGRESS"}}
        task = await store.update_task_status("a", "IN_PROGRESS")
        assert task.updated_at > old

    @pytest.mark.asyncio
    async def test_unknown_task_is_appended(self, store):
        await _load(store, "a")
        store.client.mutate.return_value = {
            "updateTaskStatus": {"id": "z", "status": "COMPLETED", "updatedAt": "2026-10-19T12:00:00Z"}
        }

        task = await store.update_task_status("z", "COMPLETED")

        assert [t.id for t in store.tasks] == ["a", "z"]
        assert store.find_task("z") == task
        assert task.status == "COMPLETED"

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, store):
        await _load(store, "a")
        with pytest.raises(ClientError) as exc:
            await store.update_task_status("a", "ARCHIVED")
        assert exc.value.kind == "validation"
        store.client.mutate.assert_not_called()


class TestGetTask:
    @pytest.mark.asyncio
    async def test_replaces_existing(self, store):
        await _load(store, "a", "b")
        store.client.query.return_value = {"task": wire_task("b", title="Fresh")}
        task = await store.get_task("b")
        assert task.title == "Fresh"
        assert [t.title for t in store.tasks] == ["Task a", "Fresh"]
        assert store.client.query.call_args.args[:2] == (GET_TASK, {"id": "b"})

    @pytest.mark.asyncio
    async def test_appends_unknown(self, store):
        await _load(store, "a")
        store.client.query.return_value = {"task": wire_task("z")}
        await store.get_task("z")
        assert [t.id for t in store.tasks] == ["a", "z"]


# === Categories ===


class TestCategories:
    @pytest.mark.asyncio
    async def test_load_replaces(self, store):
        await _load_categories(store, "c1", "c2")
        result = await _load_categories(store, "c3")
        assert result == [Category(id="c3", name="C3")]
        assert store.categories == result
        assert store.client.query.call_args.args[0] is GET_CATEGORIES

    @pytest.mark.asyncio
    async def test_load_failure_rethrows(self, store):
        await _load_categories(store, "c1")
        store.client.query.side_effect = ClientError("down", kind="transport")
        with pytest.raises(ClientError):
            await store.load_categories()
        assert [c.id for c in store.categories] == ["c1"]
        assert store.error == "down"

    @pytest.mark.asyncio
    async def test_create_appends(self, store):
        await _load_categories(store, "c1")
        store.client.mutate.return_value = {"createCategory": {"id": "c2", "name": "Home"}}
        category = await store.create_category("  Home ")
        assert category == Category(id="c2", name="Home")
        assert [c.id for c in store.categories] == ["c1", "c2"]
        assert store.client.mutate.call_args.args == (CREATE_CATEGORY, {"name": "Home"})

    @pytest.mark.asyncio
    async def test_create_rejects_blank_name(self, store):
        with pytest.raises(ClientError) as exc:
            await store.create_category("   ")
        assert exc.value.kind == "validation"
        store.client.mutate.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_replaces_by_id(self, store):
        await _load_categories(store, "c1", "c2")
        before = store.categories
        store.client.mutate.return_value = {"updateCategory": {"id": "c2", "name": "Errands"}}
        await store.update_category("c2", "Errands")
        assert store.categories[0] is before[0]
        assert store.categories[1].name == "Errands"
        assert store.client.mutate.call_args.args == (UPDATE_CATEGORY, {"id": "c2", "name": "Errands"})

    @pytest.mark.asyncio
    async def test_delete_unused(self, store):
        await _load_categories(store, "c1", "c2")
        await _load(store, "a")  # uses c1
        store.client.mutate.return_value = {"deleteCategory": True}
        assert await store.delete_category("c2") is True
        assert [c.id for c in store.categories] == ["c1"]
        assert store.client.mutate.call_args.args == (DELETE_CATEGORY, {"id": "c2"})

    @pytest.mark.asyncio
    async def test_delete_referenced_is_blocked(self, store):
        await _load_categories(store, "c1")
        await _load(store, "a")  # uses c1
        with pytest.raises(ClientError) as exc:
            await store.delete_category("c1")
        assert exc.value.kind == "validation"
        store.client.mutate.assert_not_called()
        assert [c.id for c in store.categories] == ["c1"]


# === Bootstrap / reset ===


class TestInitializeData:
    @pytest.mark.asyncio
    async def test_loads_both(self, store):
        async def fake_query(operation, *args, **kwargs):
            if operation is GET_TASKS:
                return {"tasks": [wire_task("a")]}
            return {"categories": [{"id": "c1", "name": "Work"}]}

        store.client.query.side_effect = fake_query
        assert await store.initialize_data() is True
        assert [t.id for t in store.tasks] == ["a"]
        assert [c.id for c in store.categories] == ["c1"]

    @pytest.mark.asyncio
    async def test_failure_is_recorded_not_raised(self, store):
        store.client.query.side_effect = ClientError("down", kind="transport")
        assert await store.initialize_data() is False
        assert store.error == INITIAL_LOAD_FAILED_MESSAGE
        assert store.loading is False


@pytest.mark.asyncio
async def test_logout_clears_store(store, auth):
    await _load_categories(store, "c1")
    await _load(store, "a")
    with patch_async_client("dotask.stores.auth", make_mock_response(200, {"success": True})):
        await auth.logout()
    assert store.tasks == []
    assert store.categories == []
    assert store.error is None
