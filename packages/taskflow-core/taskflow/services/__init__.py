"""
Remote service clients for Taskflow.
"""

from taskflow.services.sync import TaskSyncClient

__all__ = [
    "TaskSyncClient",
]
