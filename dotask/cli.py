"""Command-line front end for the DoTask client.

Usage:
    dotask login --email ada@example.com --password secret
    dotask tasks
    dotask add-task --title "Write report" --priority HIGH --due 2026-11-01T09:00:00Z
    dotask set-status <task-id> COMPLETED
    dotask logout

The session token is kept in the client storage file between runs.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable

from dotask.graphql.errors import ClientError
from dotask.models.task import (
    TASK_PRIORITIES,
    TASK_STATUSES,
    CreateTaskInput,
    Task,
    UpdateTaskInput,
    parse_timestamp,
    task_to_wire,
)
from dotask.state import AppState, create_app_state

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def _print_tasks(tasks: list[Task]) -> None:
    print(json.dumps([task_to_wire(t) for t in tasks], indent=2, default=str))


async def _ensure_session(state: AppState) -> None:
    if not await state.auth.check_auth():
        raise ClientError("Not logged in. Run `dotask login` first.", kind="auth")


async def _with_data(state: AppState) -> None:
    await _ensure_session(state)
    await state.store.load_categories()
    await state.store.load_tasks()


async def cmd_login(state: AppState, args: argparse.Namespace) -> None:
    user = await state.auth.login(args.email, args.password)
    print(f"Logged in as {user.name} <{user.email}>")


async def cmd_register(state: AppState, args: argparse.Namespace) -> None:
    user = await state.auth.register(args.name, args.email, args.password)
    print(f"Registered {user.name} <{user.email}>")


async def cmd_logout(state: AppState, args: argparse.Namespace) -> None:
    await state.auth.logout()
    print("Logged out")


async def cmd_whoami(state: AppState, args: argparse.Namespace) -> None:
    await _ensure_session(state)
    user = state.auth.user
    print(f"{user.name} <{user.email}> (id {user.id})")


async def cmd_tasks(state: AppState, args: argparse.Namespace) -> None:
    await _ensure_session(state)
    tasks = await state.store.load_tasks()
    if args.status:
        tasks = [t for t in tasks if t.status == args.status]
    _print_tasks(tasks)


async def cmd_add_task(state: AppState, args: argparse.Namespace) -> None:
    await _with_data(state)
    task = await state.store.create_task(
        CreateTaskInput(
            title=args.title,
            description=args.description,
            status=args.status,
            priority=args.priority,
            due_date=parse_timestamp(args.due),
            category_id=args.category,
            tags=args.tag or [],
        )
    )
    _print_tasks([task])


async def cmd_update_task(state: AppState, args: argparse.Namespace) -> None:
    await _with_data(state)
    task = await state.store.update_task(
        args.task_id,
        UpdateTaskInput(
            title=args.title,
            description=args.description,
            priority=args.priority,
            due_date=parse_timestamp(args.due),
            category_id=args.category,
            tags=args.tag,
        ),
    )
    _print_tasks([task])


async def cmd_set_status(state: AppState, args: argparse.Namespace) -> None:
    await _with_data(state)
    task = await state.store.update_task_status(args.task_id, args.status)
    _print_tasks([task])


async def cmd_delete_task(state: AppState, args: argparse.Namespace) -> None:
    await _with_data(state)
    await state.store.delete_task(args.task_id)
    print(f"Deleted task {args.task_id}")


async def cmd_categories(state: AppState, args: argparse.Namespace) -> None:
    await _ensure_session(state)
    categories = await state.store.load_categories()
    print(json.dumps([c.model_dump() for c in categories], indent=2))


async def cmd_add_category(state: AppState, args: argparse.Namespace) -> None:
    await _ensure_session(state)
    category = await state.store.create_category(args.name)
    print(json.dumps(category.model_dump(), indent=2))


async def cmd_rename_category(state: AppState, args: argparse.Namespace) -> None:
    await _ensure_session(state)
    category = await state.store.update_category(args.category_id, args.name)
    print(json.dumps(category.model_dump(), indent=2))


async def cmd_delete_category(state: AppState, args: argparse.Namespace) -> None:
    await _with_data(state)
    await state.store.delete_category(args.category_id)
    print(f"Deleted category {args.category_id}")


Command = Callable[[AppState, argparse.Namespace], Awaitable[None]]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dotask", description="DoTask task manager client")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login", help="Log in and store the session token")
    p.add_argument("--email", required=True)
    p.add_argument("--password", required=True)
    p.set_defaults(func=cmd_login)

    p = sub.add_parser("register", help="Create an account")
    p.add_argument("--name", required=True)
    p.add_argument("--email", required=True)
    p.add_argument("--password", required=True)
    p.set_defaults(func=cmd_register)

    sub.add_parser("logout", help="End the session").set_defaults(func=cmd_logout)
    sub.add_parser("whoami", help="Show the current user").set_defaults(func=cmd_whoami)

    p = sub.add_parser("tasks", help="List tasks")
    p.add_argument("--status", choices=TASK_STATUSES)
    p.set_defaults(func=cmd_tasks)

    p = sub.add_parser("add-task", help="Create a task")
    p.add_argument("--title", required=True)
    p.add_argument("--description", default="")
    p.add_argument("--status", choices=TASK_STATUSES, default="TODO")
    p.add_argument("--priority", choices=TASK_PRIORITIES, default="MEDIUM")
    p.add_argument("--due", help="Due timestamp (ISO 8601)")
    p.add_argument("--category", default="", help="Category id (default: first category)")
    p.add_argument("--tag", action="append", help="Tag (repeatable)")
    p.set_defaults(func=cmd_add_task)

    p = sub.add_parser("update-task", help="Update fields of a task")
    p.add_argument("task_id")
    p.add_argument("--title")
    p.add_argument("--description")
    p.add_argument("--priority", choices=TASK_PRIORITIES)
    p.add_argument("--due", help="Due timestamp (ISO 8601)")
    p.add_argument("--category")
    p.add_argument("--tag", action="append", help="Tag (repeatable, replaces all tags)")
    p.set_defaults(func=cmd_update_task)

    p = sub.add_parser("set-status", help="Change a task's status")
    p.add_argument("task_id")
    p.add_argument("status", choices=TASK_STATUSES)
    p.set_defaults(func=cmd_set_status)

    p = sub.add_parser("delete-task", help="Delete a task")
    p.add_argument("task_id")
    p.set_defaults(func=cmd_delete_task)

    sub.add_parser("categories", help="List categories").set_defaults(func=cmd_categories)

    p = sub.add_parser("add-category", help="Create a category")
    p.add_argument("name")
    p.set_defaults(func=cmd_add_category)

    p = sub.add_parser("rename-category", help="Rename a category")
    p.add_argument("category_id")
    p.add_argument("name")
    p.set_defaults(func=cmd_rename_category)

    p = sub.add_parser("delete-category", help="Delete an unused category")
    p.add_argument("category_id")
    p.set_defaults(func=cmd_delete_category)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    state = create_app_state()
    func: Command = args.func

    try:
        asyncio.run(func(state, args))
    except ClientError as e:
        logger.error("%s (%s)", e.message, e.kind)
        return 1
    except ValueError as e:
        logger.error("Invalid input: %s", e)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
