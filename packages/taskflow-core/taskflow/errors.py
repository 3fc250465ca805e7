"""
Error taxonomy for Taskflow.

Every failure a controller can see is one of these. The sync client raises
them; controllers map each one to a single visible effect.
"""

from typing import Optional


class TaskflowError(Exception):
    """Base exception for Taskflow."""
    pass


class TaskValidationError(TaskflowError):
    """Draft rejected locally before any request was made."""
    pass


class AuthMissing(TaskflowError):
    """No session credential available."""

    def __init__(self, message: str = "No auth token found"):
        super().__init__(message)


class SessionExpired(TaskflowError):
    """Server rejected the session credential."""

    def __init__(self, message: str = "Session expired"):
        super().__init__(message)


class RemoteError(TaskflowError):
    """
    Non-success response from the task service.

    Attributes:
        message: Message from the response body, if it carried one
        status_code: HTTP status code (None when the body itself was unusable)
    """

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        if message:
            text = message
        elif status_code is not None:
            text = f"Request failed with status {status_code}"
        else:
            text = "Request failed"
        super().__init__(text)


class TransportError(TaskflowError):
    """Request never reached the server or never came back."""
    pass
