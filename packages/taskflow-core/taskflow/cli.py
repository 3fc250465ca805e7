"""
Taskflow command line.

Drives the form and row controllers against the configured service, the same
way a UI would.
"""

import asyncio
import logging
import sys
from typing import Optional

import yaml

from taskflow.config import get_config
from taskflow.controllers import MenuAction, TaskFormController, TaskItemController, ToggleState
from taskflow.controllers.form import today_iso
from taskflow.errors import AuthMissing, SessionExpired, TaskflowError
from taskflow.models import Task
from taskflow.services import TaskSyncClient
from taskflow.session import Session, SessionGuard

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_SIGNED_OUT = 2

SIGNED_OUT_MESSAGE = "Your session is missing or has expired. Please sign in again."


class _Outcome:
    """Collects what the controllers reported through their callbacks."""

    def __init__(self):
        self.logged_out = False
        self.saved: Optional[Task] = None
        self.refreshed = False

    def logout(self) -> None:
        self.logged_out = True

    def save(self, task: Task) -> None:
        self.saved = task

    def refresh(self) -> None:
        self.refreshed = True


def format_task(task: Task) -> str:
    mark = "x" if task.completed else " "
    line = f"[{mark}] {task.id}  {task.title}  ({task.priority}"
    if task.due_date:
        line += f", due {task.due_date}"
    line += ")"
    if task.subtasks:
        line += f"  {task.progress}% of subtasks"
    return line


def build_client(config) -> TaskSyncClient:
    guard = SessionGuard(Session.from_config(config))
    return TaskSyncClient(guard, config.api.base_url, timeout=config.api.timeout)


async def _find_task(client: TaskSyncClient, task_id: str) -> Optional[Task]:
    for task in await client.list_tasks():
        if task.id == task_id:
            return task
    return None


def _edit_values(args) -> dict:
    values = {}
    if args.title is not None:
        values["title"] = args.title
    if args.description is not None:
        values["description"] = args.description
    if args.priority is not None:
        values["priority"] = args.priority
    if args.due is not None:
        values["dueDate"] = args.due
    return values


async def run(args, client: TaskSyncClient) -> int:
    """Execute one parsed command and return the exit code."""
    outcome = _Outcome()

    if args.command == "list":
        tasks = await client.list_tasks()
        for task in tasks:
            print(format_task(task))
        if not tasks:
            print("No tasks.")
        return EXIT_OK

    if args.command == "add":
        form = TaskFormController(client, on_save=outcome.save, on_logout=outcome.logout)
        form.set_field("title", args.title)
        form.set_field("description", args.description or "")
        form.set_field("priority", args.priority)
        form.set_field("dueDate", args.due or today_iso())
        if await form.submit():
            print(format_task(outcome.saved))
            return EXIT_OK
        if outcome.logged_out:
            print(SIGNED_OUT_MESSAGE, file=sys.stderr)
            return EXIT_SIGNED_OUT
        print(form.error, file=sys.stderr)
        return EXIT_ERROR

    task = await _find_task(client, args.task_id)
    if task is None:
        print(f"Task not found: {args.task_id}", file=sys.stderr)
        return EXIT_ERROR

    item = TaskItemController(task, client, on_refresh=outcome.refresh, on_logout=outcome.logout)

    if args.command == "toggle":
        state = await item.toggle_completion()
        ok = state == ToggleState.COMMITTED
    elif args.command == "delete":
        ok = await item.select_action(MenuAction.DELETE)
    else:
        ok = await item.save_edit(_edit_values(args))

    if outcome.logged_out:
        print(SIGNED_OUT_MESSAGE, file=sys.stderr)
        return EXIT_SIGNED_OUT
    if not ok:
        error = item.error or (item.edit_form.error if item.edit_form else None)
        print(error or "Operation failed", file=sys.stderr)
        return EXIT_ERROR

    if args.command == "delete":
        print(f"Deleted {task.id}")
    elif args.command == "toggle":
        print(format_task(item.task))
    else:
        print(f"Updated {task.id}")
    return EXIT_OK


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(description="Taskflow client")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List tasks")
    sub.add_parser("config", help="Show effective configuration")

    add = sub.add_parser("add", help="Create a task")
    add.add_argument("title")
    add.add_argument("--description")
    add.add_argument("--priority", default="Low", choices=["Low", "Medium", "High"])
    add.add_argument("--due", help="Due date (YYYY-MM-DD), defaults to today")

    edit = sub.add_parser("edit", help="Edit a task")
    edit.add_argument("task_id")
    edit.add_argument("--title")
    edit.add_argument("--description")
    edit.add_argument("--priority", choices=["Low", "Medium", "High"])
    edit.add_argument("--due")

    toggle = sub.add_parser("toggle", help="Flip a task's completion")
    toggle.add_argument("task_id")

    delete = sub.add_parser("delete", help="Delete a task")
    delete.add_argument("task_id")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = get_config()

    if args.command == "config":
        print(yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False), end="")
        return EXIT_OK

    client = build_client(config)
    try:
        return asyncio.run(run(args, client))
    except (SessionExpired, AuthMissing):
        print(SIGNED_OUT_MESSAGE, file=sys.stderr)
        return EXIT_SIGNED_OUT
    except TaskflowError as e:
        print(str(e), file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
