"""
UI controllers for Taskflow.
"""

from taskflow.controllers.form import TaskFormController
from taskflow.controllers.item import MenuAction, TaskItemController, ToggleState

__all__ = [
    "TaskFormController",
    "TaskItemController",
    "MenuAction",
    "ToggleState",
]
