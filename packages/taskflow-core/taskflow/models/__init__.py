"""
Core data models for Taskflow.
"""

from taskflow.models.draft import TaskDraft
from taskflow.models.task import (
    TASK_PRIORITIES,
    Subtask,
    Task,
    completed_to_wire,
    normalize_completed,
    subtask_progress,
)

__all__ = [
    "Task",
    "Subtask",
    "TaskDraft",
    "TASK_PRIORITIES",
    "normalize_completed",
    "completed_to_wire",
    "subtask_progress",
]
