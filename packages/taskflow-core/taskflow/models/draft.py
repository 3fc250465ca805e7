"""
Editable task draft.

A draft holds form values exactly as the user enters them, with completion
kept in its "Yes"/"No" form, until the form controller submits it.
"""

from dataclasses import dataclass
from typing import Optional

from taskflow.models.task import (
    DEFAULT_PRIORITY,
    Task,
    completed_to_wire,
    date_portion,
)

# Wire names accepted by TaskDraft.set_field
FIELD_ALIASES = {
    "dueDate": "due_date",
    "_id": "id",
}

DRAFT_FIELDS = ("id", "title", "description", "priority", "due_date", "completed")


@dataclass
class TaskDraft:
    """Form state for creating or editing one task."""

    title: str = ""
    description: str = ""
    priority: str = DEFAULT_PRIORITY
    due_date: str = ""
    completed: str = "No"
    id: Optional[str] = None

    @classmethod
    def from_task(cls, task: Task) -> "TaskDraft":
        """Seed a draft from a persisted task."""
        return cls(
            title=task.title or "",
            description=task.description or "",
            priority=task.priority or DEFAULT_PRIORITY,
            due_date=date_portion(task.due_date),
            completed=completed_to_wire(task.completed),
            id=task.id,
        )

    def set_field(self, name: str, value) -> None:
        """Merge a single form value. No validation happens here."""
        attr = FIELD_ALIASES.get(name, name)
        if attr not in DRAFT_FIELDS:
            raise KeyError(f"Unknown draft field: {name}")
        setattr(self, attr, value)

    def to_payload(self) -> dict:
        """Request body for create/update. Never includes the id."""
        return {
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "dueDate": self.due_date,
            "completed": completed_to_wire(self.completed),
        }
