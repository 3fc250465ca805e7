"""
Task Form Controller for Taskflow.

Owns one editable draft and its submission lifecycle: validate locally, send
to the task service, then report the saved task or an inline error.
"""

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from taskflow.errors import (
    AuthMissing,
    RemoteError,
    SessionExpired,
    TaskValidationError,
    TransportError,
)
from taskflow.models.draft import TaskDraft
from taskflow.models.task import TASK_PRIORITIES, Task

logger = logging.getLogger(__name__)

PAST_DUE_MESSAGE = "Due date cannot be in the past."
DUE_REQUIRED_MESSAGE = "Due date is required."
TITLE_REQUIRED_MESSAGE = "Title is required."
PRIORITY_MESSAGE = f"Priority must be one of: {', '.join(TASK_PRIORITIES)}."
SAVE_FAILED_MESSAGE = "Failed to save task"
OFFLINE_MESSAGE = "Could not reach the server. Check your connection and try again."


def today_iso() -> str:
    """Today's date as YYYY-MM-DD (UTC)."""
    return datetime.now(timezone.utc).date().isoformat()


def validate_draft(draft: TaskDraft, today: str) -> None:
    """
    Check a draft before submission.

    Raises:
        TaskValidationError: with the message to show inline
    """
    if not draft.due_date:
        raise TaskValidationError(DUE_REQUIRED_MESSAGE)
    # ISO dates compare correctly as strings
    if draft.due_date < today:
        raise TaskValidationError(PAST_DUE_MESSAGE)
    if not (draft.title or "").strip():
        raise TaskValidationError(TITLE_REQUIRED_MESSAGE)
    if draft.priority not in TASK_PRIORITIES:
        raise TaskValidationError(PRIORITY_MESSAGE)


class TaskFormController:
    """
    Create/edit form for a single task.

    Only one submission may be in flight at a time. Closing the form while a
    submission is pending makes its eventual response stale; stale responses
    are dropped, except that an expired session still logs the user out.
    """

    def __init__(
        self,
        client,
        task: Optional[Task] = None,
        on_save: Optional[Callable[[Task], None]] = None,
        on_close: Optional[Callable[[], None]] = None,
        on_logout: Optional[Callable[[], None]] = None,
        persist: Optional[Callable[[TaskDraft], Awaitable[Task]]] = None,
        today: Optional[Callable[[], str]] = None,
    ):
        """
        Initialize the form.

        Args:
            client: TaskSyncClient used for create/update
            task: Task to edit. None starts a blank draft.
            on_save: Called with the server-returned task after a save
            on_close: Called when the form is done and should be dismissed
            on_logout: Called when the session is missing or expired
            persist: Optional replacement for the default create/update call
            today: Optional provider of today's YYYY-MM-DD date
        """
        self.client = client
        self.on_save = on_save
        self.on_close = on_close
        self.on_logout = on_logout
        self._persist = persist
        self._today = today or today_iso

        self.draft = TaskDraft.from_task(task) if task else TaskDraft()
        self.error: Optional[str] = None
        self.can_retry = False
        self.is_open = True
        self.is_submitting = False
        self._generation = 0

    @property
    def is_edit(self) -> bool:
        return bool(self.draft.id)

    def set_field(self, name: str, value) -> None:
        """Merge one form value into the draft."""
        self.draft.set_field(name, value)

    async def _send(self, draft: TaskDraft) -> Task:
        if self._persist is not None:
            return await self._persist(draft)
        if draft.id:
            return await self.client.update(draft.id, draft)
        return await self.client.create(draft)

    async def submit(self) -> bool:
        """
        Validate and save the draft.

        Returns:
            True if the task was saved, False otherwise (see `error`)
        """
        if not self.is_open:
            logger.debug("Submit ignored: form is closed")
            return False
        if self.is_submitting:
            logger.debug("Submit ignored: a submission is already in flight")
            return False

        try:
            validate_draft(self.draft, self._today())
        except TaskValidationError as e:
            self.error = str(e)
            self.can_retry = False
            return False

        self.is_submitting = True
        self.error = None
        self.can_retry = False
        generation = self._generation

        try:
            saved = await self._send(self.draft)
        except (SessionExpired, AuthMissing) as e:
            logger.warning(f"Save aborted, signing out: {e}")
            self._notify_logout()
            return False
        except RemoteError as e:
            if generation == self._generation:
                self.error = e.message or SAVE_FAILED_MESSAGE
            return False
        except TransportError as e:
            logger.warning(f"Save failed to reach server: {e}")
            if generation == self._generation:
                self.error = OFFLINE_MESSAGE
                self.can_retry = True
            return False
        finally:
            if generation == self._generation:
                self.is_submitting = False

        if generation != self._generation:
            logger.debug(f"Dropping stale save response for task {saved.id}")
            return False

        if self.on_save:
            self.on_save(saved)
        self.close()
        return True

    async def retry(self) -> bool:
        """Resubmit the preserved draft after a connection failure."""
        if not self.can_retry:
            return False
        return await self.submit()

    def close(self) -> None:
        """Dismiss the form. Any pending submission becomes stale."""
        self._generation += 1
        self.is_submitting = False
        was_open = self.is_open
        self.is_open = False
        if was_open and self.on_close:
            self.on_close()

    def _notify_logout(self) -> None:
        if self.on_logout:
            self.on_logout()
