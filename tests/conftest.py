"""
Pytest configuration and fixtures for taskflow tests.
"""

import asyncio
import json
import sys
from pathlib import Path

import httpx
import pytest

# Add packages to path for testing
packages_dir = Path(__file__).parent.parent / "packages"
sys.path.insert(0, str(packages_dir / "taskflow-core"))

TODAY = "2026-10-18"

API_BASE = "https://tasks.example.test/api"
TOKEN = "token-abc123"


class FakeSyncClient:
    """
    Stand-in for TaskSyncClient that records calls.

    Outcomes queued with push() are returned (or raised, for exceptions) in
    order; with an empty queue every call succeeds. Setting `gate` to an
    asyncio.Event holds every call until the event is set.
    """

    def __init__(self):
        self.calls = []
        self.queue = []
        self.gate = None

    def push(self, outcome) -> None:
        self.queue.append(outcome)

    def hold(self) -> asyncio.Event:
        self.gate = asyncio.Event()
        return self.gate

    async def _respond(self, default):
        if self.gate is not None:
            await self.gate.wait()
        if self.queue:
            outcome = self.queue.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        return default

    async def create(self, draft):
        from taskflow.models import Task

        payload = draft.to_payload()
        self.calls.append(("create", None, payload))
        created = dict(payload, _id=f"task-{len(self.calls)}", createdAt="2026-10-18T09:00:00Z")
        return await self._respond(Task.from_dict(created))

    async def update(self, task_id, fields):
        from taskflow.models import Task

        payload = fields.to_payload() if hasattr(fields, "to_payload") else dict(fields)
        self.calls.append(("update", task_id, payload))
        return await self._respond(Task.from_dict(dict(payload, _id=task_id)))

    async def delete(self, task_id):
        self.calls.append(("delete", task_id, None))
        return await self._respond(None)


class FakeTaskServer:
    """
    In-memory /tasks service behind an httpx.MockTransport.

    Rejects any request whose bearer token is not `token` with a 401.
    """

    def __init__(self, token: str = TOKEN):
        self.token = token
        self.tasks = {}
        self.requests = []
        self._next_id = 1

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, json={"message": "Not authorized"})

        path = request.url.path.split("/api", 1)[-1]
        body = json.loads(request.content) if request.content else {}

        if path == "/tasks" and request.method == "GET":
            return httpx.Response(200, json=list(self.tasks.values()))

        if path == "/tasks" and request.method == "POST":
            task_id = f"srv-{self._next_id}"
            self._next_id += 1
            task = dict(body, _id=task_id, createdAt="2026-10-18T09:00:00.000Z", subtasks=[])
            self.tasks[task_id] = task
            return httpx.Response(201, json=task)

        task_id = path.rsplit("/", 1)[-1]
        if task_id not in self.tasks:
            return httpx.Response(404, json={"message": "Task not found"})

        if request.method == "PUT":
            self.tasks[task_id].update(body)
            return httpx.Response(200, json=self.tasks[task_id])

        if request.method == "DELETE":
            del self.tasks[task_id]
            return httpx.Response(200, json={"message": "Task deleted"})

        return httpx.Response(405)


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / ".taskflow"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def today():
    """Fixed 'today' provider for controllers."""
    return lambda: TODAY


@pytest.fixture
def fake_client():
    return FakeSyncClient()


@pytest.fixture
def fake_server():
    return FakeTaskServer()


@pytest.fixture
def sync_client(fake_server):
    """TaskSyncClient wired to the in-memory server with a valid session."""
    from taskflow.services import TaskSyncClient
    from taskflow.session import Session, SessionGuard

    guard = SessionGuard(Session(token=TOKEN))
    return TaskSyncClient(guard, API_BASE, transport=fake_server.transport())


@pytest.fixture
def sample_task_data():
    """Task as the service returns it."""
    return {
        "_id": "66f1c0ffee",
        "title": "Groceries",
        "description": "Milk and eggs",
        "priority": "Medium",
        "dueDate": "2026-10-20T00:00:00.000Z",
        "completed": "No",
        "createdAt": "2026-10-01T12:30:00.000Z",
        "subtasks": [
            {"title": "Milk", "completed": True},
            {"title": "Eggs", "completed": False},
            {"title": "Bread", "completed": True},
        ],
    }


@pytest.fixture
def sample_task(sample_task_data):
    from taskflow.models import Task

    return Task.from_dict(sample_task_data)
