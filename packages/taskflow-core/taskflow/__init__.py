"""
Taskflow Client Core

Controllers that keep local task state in step with the Taskflow service.
"""

__version__ = "0.1.0"

from taskflow.config import TaskflowConfig, load_config
from taskflow.services import TaskSyncClient
from taskflow.session import Session, SessionGuard

__all__ = [
    "load_config",
    "TaskflowConfig",
    "Session",
    "SessionGuard",
    "TaskSyncClient",
]
