"""
Session credential lookup.

The session is an explicit object handed to the sync client, so nothing reads
credentials from process-wide state.
"""

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """The signed-in user's credential, if any."""

    token: Optional[str] = None

    @classmethod
    def from_config(cls, config) -> "Session":
        """Build a session from the configured token or token file."""
        return cls(token=config.auth.resolve_token())

    def sign_in(self, token: str) -> None:
        self.token = token

    def sign_out(self) -> None:
        logger.info("Session cleared")
        self.token = None


class SessionGuard:
    """
    Single source of truth for whether a usable credential exists.

    Expiry is not detected here; the sync client learns about it from the
    server. There is no refresh: an expired session means signing in again.
    """

    def __init__(self, session: Session):
        self._session = session

    def get_credential(self) -> Optional[str]:
        """Return the current token, or None if there is none."""
        token = self._session.token
        if token is None or not token.strip():
            return None
        return token
