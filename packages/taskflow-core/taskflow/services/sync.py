"""
Task Sync Client for Taskflow.

Mutating calls against the remote task resource, with every HTTP outcome
classified into success or exactly one Taskflow error.
"""

import logging
from typing import Any, Optional

import httpx

from taskflow.errors import AuthMissing, RemoteError, SessionExpired, TransportError
from taskflow.models.draft import TaskDraft
from taskflow.models.task import Task, completed_to_wire
from taskflow.session import SessionGuard

logger = logging.getLogger(__name__)


class TaskSyncClient:
    """
    Client for the /tasks resource.

    Never retries; whether to try again is always the caller's decision.
    """

    def __init__(
        self,
        guard: SessionGuard,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the sync client.

        Args:
            guard: SessionGuard consulted before every request
            base_url: Service root, e.g. https://example.com/api
            timeout: Request timeout in seconds. None keeps the httpx default.
            transport: Optional httpx transport (used by tests)
        """
        self.guard = guard
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict:
        token = self.guard.get_credential()
        if not token:
            raise AuthMissing()
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        }

    def _client(self) -> httpx.AsyncClient:
        kwargs: dict[str, Any] = {"transport": self._transport}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return httpx.AsyncClient(**kwargs)

    async def _request(self, method: str, path: str, body: Optional[dict] = None) -> httpx.Response:
        headers = self._headers()
        url = f"{self.base_url}{path}"

        try:
            async with self._client() as client:
                response = await client.request(method, url, headers=headers, json=body)
        except httpx.TransportError as e:
            logger.warning(f"{method} {url} failed to reach server: {e}")
            raise TransportError(str(e) or e.__class__.__name__) from e
        except httpx.RequestError as e:
            # The server answered, but the response was unusable (bad encoding, redirect loop)
            logger.warning(f"{method} {url} returned an unusable response: {e}")
            raise RemoteError(f"Invalid response from server: {e.__class__.__name__}") from e

        if response.is_success:
            return response

        if response.status_code == 401:
            logger.warning(f"{method} {url} rejected credential")
            raise SessionExpired()

        message = _error_message(response)
        logger.warning(f"{method} {url} returned {response.status_code}: {message}")
        raise RemoteError(message, response.status_code)

    @staticmethod
    def _task_from(response: httpx.Response) -> Task:
        try:
            data = response.json()
        except ValueError:
            raise RemoteError("Invalid response from server", response.status_code) from None
        if not isinstance(data, dict):
            raise RemoteError("Invalid response from server", response.status_code)
        # Some deployments wrap the task: {"task": {...}}
        if isinstance(data.get("task"), dict):
            data = data["task"]
        return Task.from_dict(data)

    async def create(self, draft) -> Task:
        """
        Create a task.

        Args:
            draft: TaskDraft, or a dict already in wire form

        Returns:
            The server-assigned Task
        """
        body = draft.to_payload() if isinstance(draft, TaskDraft) else _encode_fields(draft)
        body.pop("_id", None)
        body.pop("id", None)

        response = await self._request("POST", "/tasks", body)
        task = self._task_from(response)
        if not task.id:
            raise RemoteError("Server response did not include a task id", response.status_code)

        logger.info(f"Created task: {task.id} - {task.title}")
        return task

    async def update(self, task_id: str, fields) -> Task:
        """
        Update a task.

        Args:
            task_id: Task ID
            fields: Full TaskDraft or a dict with a subset of wire fields;
                the server merges what is sent.

        Returns:
            Updated Task
        """
        body = fields.to_payload() if isinstance(fields, TaskDraft) else _encode_fields(fields)

        response = await self._request("PUT", f"/tasks/{task_id}", body)
        task = self._task_from(response)
        if not task.id:
            task.id = task_id

        logger.info(f"Updated task: {task_id} ({', '.join(body)})")
        return task

    async def delete(self, task_id: str) -> None:
        """Delete a task. The response body is ignored."""
        await self._request("DELETE", f"/tasks/{task_id}")
        logger.info(f"Deleted task: {task_id}")

    async def list_tasks(self) -> list[Task]:
        """Fetch the signed-in user's tasks."""
        response = await self._request("GET", "/tasks")
        try:
            data = response.json()
        except ValueError:
            raise RemoteError("Invalid response from server", response.status_code) from None

        if isinstance(data, dict):
            data = data.get("tasks", [])
        if not isinstance(data, list):
            raise RemoteError("Invalid response from server", response.status_code)

        return [Task.from_dict(row) for row in data if isinstance(row, dict)]


def _encode_fields(fields: dict) -> dict:
    """Copy a field dict, encoding completion for the wire."""
    body = dict(fields)
    if "completed" in body:
        body["completed"] = completed_to_wire(body["completed"])
    if "due_date" in body:
        body["dueDate"] = body.pop("due_date")
    return body


def _error_message(response: httpx.Response) -> Optional[str]:
    """Pull the 'message' field out of an error body, if there is one."""
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return None
