"""
Task model for Taskflow.

Tasks are owned by the remote service. The client holds copies of them for
editing and display, and converts between the wire schema and Python values.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

# Valid priority values
TASK_PRIORITIES = ("Low", "Medium", "High")

DEFAULT_PRIORITY = "Low"


def normalize_completed(value: Any) -> bool:
    """
    Normalize a wire or UI completion value to a bool.

    True, numeric 1 and case-insensitive "yes" are completed; anything else is not.
    """
    if isinstance(value, str):
        return value.strip().lower() == "yes"
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    return False


def completed_to_wire(flag: Any) -> str:
    """Encode a completion value as the service expects it."""
    return "Yes" if normalize_completed(flag) else "No"


def date_portion(value: Optional[str]) -> str:
    """Truncate a date or datetime string to YYYY-MM-DD."""
    if not value:
        return ""
    return str(value).split("T")[0]


def subtask_progress(subtasks: List["Subtask"]) -> int:
    """
    Percentage of completed subtasks, rounded half up.

    Returns 0 when there are no subtasks.
    """
    total = len(subtasks)
    if total == 0:
        return 0
    done = sum(1 for st in subtasks if st.completed)
    return (done * 200 + total) // (total * 2)


@dataclass
class Subtask:
    """A checklist item nested under a task."""

    title: str
    completed: bool = False

    def to_dict(self) -> dict:
        return {"title": self.title, "completed": self.completed}

    @classmethod
    def from_dict(cls, data: dict) -> "Subtask":
        return cls(
            title=data.get("title") or "",
            completed=normalize_completed(data.get("completed", False)),
        )


@dataclass
class Task:
    """
    A persisted task, as returned by the task service.

    Attributes:
        title: Task title
        id: Server-assigned identifier (None for unsaved drafts)
        description: Free-form details
        priority: Priority level (Low, Medium, High)
        due_date: Due date as YYYY-MM-DD
        completed: Completion flag
        created_at: Server-assigned creation timestamp
        subtasks: Ordered checklist items
    """

    title: str
    id: Optional[str] = None
    description: str = ""
    priority: str = DEFAULT_PRIORITY
    due_date: str = ""
    completed: bool = False
    created_at: Optional[str] = None
    subtasks: List[Subtask] = field(default_factory=list)

    def __post_init__(self):
        if self.priority not in TASK_PRIORITIES:
            self.priority = DEFAULT_PRIORITY
        self.completed = normalize_completed(self.completed)
        self.due_date = date_portion(self.due_date)

    @property
    def progress(self) -> int:
        """Subtask completion percentage."""
        return subtask_progress(self.subtasks)

    def to_dict(self) -> dict:
        """Convert to the wire schema."""
        result = {
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "dueDate": self.due_date,
            "completed": completed_to_wire(self.completed),
            "subtasks": [st.to_dict() for st in self.subtasks],
        }
        if self.id:
            result["_id"] = self.id
        if self.created_at:
            result["createdAt"] = self.created_at
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from a service response body."""
        task_id = data.get("_id") or data.get("id")
        return cls(
            id=str(task_id) if task_id else None,
            title=data.get("title") or "",
            description=data.get("description") or "",
            priority=data.get("priority") or DEFAULT_PRIORITY,
            due_date=data.get("dueDate") or "",
            completed=data.get("completed", False),
            created_at=data.get("createdAt"),
            subtasks=[Subtask.from_dict(st) for st in data.get("subtasks") or []],
        )
