"""
Task Item Controller for Taskflow.

Per-row orchestration for one displayed task: optimistic completion toggling
with rollback, deletion, editing through a TaskFormController, the row menu,
and local subtask progress.
"""

import logging
from dataclasses import replace
from enum import Enum
from typing import Callable, Optional

from taskflow.controllers.form import OFFLINE_MESSAGE, TaskFormController, today_iso
from taskflow.errors import AuthMissing, RemoteError, SessionExpired, TransportError
from taskflow.models.draft import DRAFT_FIELDS, TaskDraft
from taskflow.models.task import Subtask, Task, subtask_progress

logger = logging.getLogger(__name__)

# The only fields an edit may send; id, createdAt and subtasks are server-managed
EDIT_FIELDS = ("title", "description", "priority", "dueDate", "completed")

# Keys in an edit payload that must never reach the form
_PROTECTED_KEYS = ("id", "_id", "createdAt", "created_at", "subtasks")

UPDATE_FAILED_MESSAGE = "Failed to update task"
DELETE_FAILED_MESSAGE = "Failed to delete task"
EDIT_PENDING_MESSAGE = "An edit is already being saved"


class ToggleState(str, Enum):
    """Completion toggle lifecycle: IDLE -> PENDING -> COMMITTED | ROLLED_BACK -> IDLE."""

    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class MenuAction(str, Enum):
    """Actions offered by a row's menu."""

    EDIT = "edit"
    DELETE = "delete"


def build_edit_payload(draft: TaskDraft) -> dict:
    """Update body for an edit, restricted to the user-editable fields."""
    payload = draft.to_payload()
    return {key: payload[key] for key in EDIT_FIELDS}


class TaskItemController:
    """
    Controller for one row in the task list.

    The row keeps a mirror of its task that the parent replaces after every
    list refresh. List membership is the parent's business: deleting or
    editing only asks the parent to refresh.
    """

    def __init__(
        self,
        task: Task,
        client,
        on_refresh: Optional[Callable[[], None]] = None,
        on_logout: Optional[Callable[[], None]] = None,
        today: Optional[Callable[[], str]] = None,
    ):
        self.client = client
        self.on_refresh = on_refresh
        self.on_logout = on_logout
        self._today = today or today_iso

        self.edit_form: Optional[TaskFormController] = None
        self._generation = 0
        self._handlers = {
            MenuAction.EDIT: self._edit_action,
            MenuAction.DELETE: self.delete,
        }
        self._load(task)

    def _load(self, task: Task) -> None:
        self.task = task
        self.completed = task.completed
        self.subtasks = [Subtask(st.title, st.completed) for st in task.subtasks]
        self.menu_open = False
        self.error: Optional[str] = None
        self.can_retry = False
        self.toggle_state = ToggleState.IDLE
        self.is_busy = False
        self._retry_op = None

    def replace_task(self, task: Task) -> None:
        """Discard the mirror for a fresh copy from the parent."""
        self._generation += 1
        self._load(task)

    @property
    def progress(self) -> int:
        """Subtask completion percentage for display."""
        return subtask_progress(self.subtasks)

    def is_due_today(self, today: Optional[str] = None) -> bool:
        return bool(self.task.due_date) and self.task.due_date == (today or self._today())

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    async def toggle_completion(self) -> ToggleState:
        """
        Flip completion optimistically and persist it.

        Any failure restores the previous value. Returns the terminal state
        of this toggle, or IDLE if another row operation was still pending.
        """
        if self.is_busy:
            logger.debug(f"Toggle ignored for task {self.task.id}: operation pending")
            return ToggleState.IDLE

        previous = self.completed
        self.completed = not previous
        self._begin()
        self.toggle_state = ToggleState.PENDING
        generation = self._generation
        settled = False

        try:
            await self.client.update(self.task.id, {"completed": self.completed})
            settled = True
        except (SessionExpired, AuthMissing):
            settled = True
            outcome = self._rollback(generation, previous)
            self._notify_logout()
            return outcome
        except RemoteError as e:
            settled = True
            outcome = self._rollback(generation, previous)
            self._fail(generation, e.message or UPDATE_FAILED_MESSAGE)
            return outcome
        except TransportError:
            settled = True
            outcome = self._rollback(generation, previous)
            self._fail(generation, OFFLINE_MESSAGE, retry=self.toggle_completion)
            return outcome
        finally:
            if not settled:
                # Unexpected error or cancellation: never leave the flag half-applied
                self._rollback(generation, previous)
                self._fail(generation, UPDATE_FAILED_MESSAGE)
            self._end(generation)

        if generation != self._generation:
            logger.debug(f"Dropping stale toggle response for task {self.task.id}")
            return ToggleState.IDLE

        # The parent owns the task it passed in; commit to a copy
        self.task = replace(self.task, completed=self.completed)
        self.toggle_state = ToggleState.IDLE
        return ToggleState.COMMITTED

    def _rollback(self, generation: int, previous: bool) -> ToggleState:
        if generation != self._generation:
            return ToggleState.IDLE
        self.completed = previous
        self.toggle_state = ToggleState.IDLE
        logger.info(f"Rolled back completion for task {self.task.id}")
        return ToggleState.ROLLED_BACK

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    async def delete(self) -> bool:
        """Delete the task and ask the parent to refresh its list."""
        if self.is_busy:
            logger.debug(f"Delete ignored for task {self.task.id}: operation pending")
            return False

        self._begin()
        generation = self._generation

        try:
            await self.client.delete(self.task.id)
        except (SessionExpired, AuthMissing):
            self._notify_logout()
            return False
        except RemoteError as e:
            self._fail(generation, e.message or DELETE_FAILED_MESSAGE)
            return False
        except TransportError:
            self._fail(generation, OFFLINE_MESSAGE, retry=self.delete)
            return False
        finally:
            self._end(generation)

        # The server state changed even if this row has since been replaced
        self._notify_refresh()
        return True

    # -------------------------------------------------------------------------
    # Edit
    # -------------------------------------------------------------------------

    def request_edit(self) -> TaskFormController:
        """Open the edit form, seeded with the row's current state."""
        if self.edit_form is not None and self.edit_form.is_open:
            return self.edit_form

        current = replace(self.task, completed=self.completed)
        self.edit_form = TaskFormController(
            self.client,
            task=current,
            on_save=self._edit_saved,
            on_close=self._edit_closed,
            on_logout=self._notify_logout,
            persist=self._persist_edit,
            today=self._today,
        )
        return self.edit_form

    async def save_edit(self, updated_draft) -> bool:
        """
        Save edited values through the edit form.

        Args:
            updated_draft: TaskDraft or dict of draft fields. Server-managed
                keys (id, createdAt, subtasks) are ignored.

        Returns:
            True if the update was saved
        """
        form = self.request_edit()
        if form.is_submitting:
            # Merging now would rewrite the draft under the request in flight
            logger.debug(f"Edit ignored for task {self.task.id}: save pending")
            self.error = EDIT_PENDING_MESSAGE
            return False

        if isinstance(updated_draft, TaskDraft):
            values = {name: getattr(updated_draft, name) for name in DRAFT_FIELDS if name != "id"}
        else:
            values = {k: v for k, v in updated_draft.items() if k not in _PROTECTED_KEYS}

        for name, value in values.items():
            form.set_field(name, value)

        return await form.submit()

    async def _persist_edit(self, draft: TaskDraft) -> Task:
        return await self.client.update(self.task.id, build_edit_payload(draft))

    def _edit_saved(self, saved: Task) -> None:
        logger.info(f"Saved edit for task {self.task.id}")
        if self.edit_form is not None:
            self.edit_form.close()
        self._notify_refresh()

    def _edit_closed(self) -> None:
        self.edit_form = None

    # -------------------------------------------------------------------------
    # Menu and subtasks
    # -------------------------------------------------------------------------

    def toggle_menu(self) -> None:
        self.menu_open = not self.menu_open

    async def select_action(self, action: MenuAction):
        """Close the menu and run the chosen action."""
        if not isinstance(action, MenuAction):
            raise ValueError(f"Unknown menu action: {action!r}")
        self.menu_open = False
        handler = self._handlers[action]
        return await handler()

    async def _edit_action(self) -> TaskFormController:
        return self.request_edit()

    def toggle_subtask(self, index: int) -> int:
        """
        Flip a subtask locally and return the new progress.

        Subtask state is display-only; nothing is sent to the server.
        """
        subtask = self.subtasks[index]
        subtask.completed = not subtask.completed
        return self.progress

    # -------------------------------------------------------------------------
    # Retry and bookkeeping
    # -------------------------------------------------------------------------

    async def retry(self):
        """Re-run the last operation that failed to reach the server."""
        op = self._retry_op
        if op is None:
            return None
        self._retry_op = None
        return await op()

    def _begin(self) -> None:
        self.is_busy = True
        self.error = None
        self.can_retry = False
        self._retry_op = None

    def _end(self, generation: int) -> None:
        if generation == self._generation:
            self.is_busy = False

    def _fail(self, generation: int, message: str, retry=None) -> None:
        if generation != self._generation:
            return
        self.error = message
        if retry is not None:
            self.can_retry = True
            self._retry_op = retry

    def _notify_refresh(self) -> None:
        if self.on_refresh:
            self.on_refresh()

    def _notify_logout(self) -> None:
        if self.on_logout:
            self.on_logout()
