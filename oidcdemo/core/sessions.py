"""Browser session state for the demo flow.

Sessions live only in process memory. A session entry exists only while the
browser is authenticated; an absent entry means "not logged in".
"""

from __future__ import annotations

import secrets
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

SESSION_COOKIE_NAME = "sessionId"
SESSION_COOKIE_MAX_AGE = 86400  # 24 hours
DEFAULT_SESSION_ID = "default"

# Session identifier settings
SESSION_ID_BYTES = 32  # 43 URL-safe characters


@dataclass(frozen=True)
class Session:
    """Authentication state for one browser."""

    is_authenticated: bool = False
    id_token: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    user_info: dict[str, Any] | None = None

    @property
    def username(self) -> str | None:
        """Display name from the userinfo claims, if any were fetched."""
        if not self.user_info:
            return None
        return self.user_info.get("preferred_username") or self.user_info.get("email") or "User"


# Returned for lookups that find no entry
UNAUTHENTICATED = Session()


def generate_session_id() -> str:
    """Generate a random session identifier.

    Returns:
        A URL-safe string from the OS CSPRNG.
    """
    return secrets.token_urlsafe(SESSION_ID_BYTES)


def resolve_session_id(cookies: Mapping[str, str], headers: Mapping[str, str]) -> str:
    """Resolve the session identifier for a request.

    Precedence: the ``sessionId`` cookie, then the raw ``Authorization``
    header value, then the literal ``"default"``. Values are used verbatim.

    Args:
        cookies: Request cookies.
        headers: Request headers.

    Returns:
        The session identifier. Never fails.
    """
    cookie_value = cookies.get(SESSION_COOKIE_NAME)
    if cookie_value is not None:
        return cookie_value

    # The Authorization header doubles as a session key here; see DESIGN.md
    authorization = headers.get("Authorization")
    if authorization:
        return authorization

    return DEFAULT_SESSION_ID


class SessionStore:
    """Thread-safe in-memory mapping of session id to Session.

    No expiry and no capacity bound.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Session | None:
        """Look up a session without side effects."""
        with self._lock:
            return self._sessions.get(session_id)

    def put(self, session_id: str, session: Session) -> None:
        """Store a session, replacing any existing entry."""
        with self._lock:
            self._sessions[session_id] = session

    def delete(self, session_id: str) -> None:
        """Remove a session. Deleting a missing id is a no-op."""
        with self._lock:
            self._sessions.pop(session_id, None)

    def size(self) -> int:
        """Number of stored sessions (diagnostics only)."""
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions
