"""Authorization Code flow controller.

Implements the four legs of the demo flow:

1. ``login``    - redirect the browser to the authorization endpoint
2. ``callback`` - exchange the code for tokens and create the session
3. ``status``   - report the session's authentication state
4. ``logout``   - drop the session and redirect to the provider's logout

No flow state is persisted between legs. Whether a browser is logged in is
decided by the presence of its entry in the session store.

The flow sends no ``state`` parameter and performs no CSRF check on the
callback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from oidcdemo.core.events import EventLog, EventType
from oidcdemo.core.oidc.client import KeycloakClient
from oidcdemo.core.sessions import (
    DEFAULT_SESSION_ID,
    UNAUTHENTICATED,
    Session,
    SessionStore,
    generate_session_id,
)

logger = logging.getLogger(__name__)

LOGOUT_SUCCESS_PATH = "/logout-success"


class CallbackError(StrEnum):
    """Error codes reported to the dashboard via ``/?error=<code>``."""

    NO_AUTH_CODE = "no_auth_code"
    AUTH_FAILED = "auth_failed"


@dataclass(frozen=True)
class FlowRedirect:
    """Outcome of a flow leg: where to send the browser and what to do
    with the session cookie.

    Attributes:
        location: Redirect target.
        set_session_cookie: Session id to store in the cookie, if any.
        clear_session_cookie: Whether to expire the session cookie.
    """

    location: str
    set_session_cookie: str | None = None
    clear_session_cookie: bool = False


class AuthFlowController:
    """Runs the Authorization Code flow against a session store."""

    def __init__(
        self,
        client: KeycloakClient,
        sessions: SessionStore,
        events: EventLog,
    ) -> None:
        """Initialize the controller.

        Args:
            client: Client for the provider's endpoints.
            sessions: Store that owns all session entries.
            events: Dashboard event log.
        """
        self.client = client
        self.sessions = sessions
        self.events = events

    def login(self) -> FlowRedirect:
        """Start the flow by redirecting to the authorization endpoint."""
        self.events.publish("Redirecting to Keycloak for authentication...", EventType.INFO)
        return FlowRedirect(location=self.client.authorization_url())

    def callback(
        self,
        session_id: str,
        code: str | None,
        error: str | None = None,
        error_description: str | None = None,
    ) -> FlowRedirect:
        """Handle the provider's redirect back with an authorization code.

        Args:
            session_id: Session id resolved from the request.
            code: The ``code`` query parameter.
            error: The ``error`` query parameter, if the provider sent one.
            error_description: The ``error_description`` query parameter.

        Returns:
            Redirect to the dashboard with ``auth=success`` or ``error=<code>``.
        """
        if session_id == DEFAULT_SESSION_ID:
            session_id = generate_session_id()

        if not code:
            if error:
                logger.warning(f"Provider returned error on callback: {error}: {error_description or ''}")
            self.events.publish("Authorization code not found in callback", EventType.ERROR)
            return FlowRedirect(location=f"/?error={CallbackError.NO_AUTH_CODE}")

        self.events.publish(f"Authorization code received: {code[:8]}...", EventType.SUCCESS)
        self.events.publish("Exchanging code for access tokens...", EventType.INFO)

        token = self.client.exchange_code(code)
        if not token.is_success:
            logger.error(
                f"Token exchange failed (status={token.status_code}): "
                f"{token.error}: {token.error_description}"
            )
            self.events.publish("Error obtaining tokens", EventType.ERROR)
            return FlowRedirect(location=f"/?error={CallbackError.AUTH_FAILED}")

        self.events.publish("Tokens received successfully", EventType.SUCCESS)

        session = Session(
            is_authenticated=True,
            id_token=token.id_token,
            access_token=token.access_token,
            refresh_token=token.refresh_token,
        )
        self.sessions.put(session_id, session)

        userinfo = self.client.get_userinfo(token.access_token or "")
        if userinfo.is_success:
            session = replace(session, user_info=userinfo.claims)
            self.sessions.put(session_id, session)
            self.events.publish(f"User authenticated: {session.username}", EventType.SUCCESS)
        else:
            logger.warning(
                f"UserInfo request failed (status={userinfo.status_code}): "
                f"{userinfo.error}: {userinfo.error_description}"
            )
            self.events.publish("Could not fetch user information", EventType.WARNING)

        self.events.publish("Authentication completed, redirecting to main page", EventType.SUCCESS)
        return FlowRedirect(location="/?auth=success", set_session_cookie=session_id)

    def status(self, session_id: str) -> dict[str, Any]:
        """Build the status payload for a session. Never mutates the store.

        Args:
            session_id: Session id resolved from the request.

        Returns:
            JSON-serializable status payload.
        """
        session = self.sessions.get(session_id) or UNAUTHENTICATED

        user_status = "Not Authenticated"
        user_info = None
        if session.is_authenticated:
            if session.user_info:
                user_status = f"Authenticated ({session.username})"
                user_info = session.user_info
            else:
                user_status = "Authenticated"

        payload = {
            "server": "Server Online",
            "user": user_status,
            "userInfo": user_info,
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "sessions": self.sessions.size(),
            "logs": len(self.events),
            "sessionId": session_id,
        }

        self.events.publish(f"Status checked for session: {session_id[:8]}...", EventType.INFO)
        return payload

    def logout(self, session_id: str) -> FlowRedirect:
        """End the session and redirect to the provider's logout endpoint.

        The local session is deleted before the redirect; the provider's
        logout is not confirmed.

        Args:
            session_id: Session id resolved from the request.

        Returns:
            Redirect to the provider logout URL, or straight to the
            confirmation page when there is no authenticated session.
        """
        session = self.sessions.get(session_id)

        if session is None or not session.is_authenticated:
            self.events.publish("Logout attempt without active session", EventType.WARNING)
            return FlowRedirect(location=LOGOUT_SUCCESS_PATH)

        logout_url = self.client.logout_url(id_token=session.id_token)
        self.events.publish("Redirecting to Keycloak for logout...", EventType.INFO)

        self.sessions.delete(session_id)
        return FlowRedirect(location=logout_url, clear_session_cookie=True)
