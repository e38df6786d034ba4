"""Tests for the Authorization Code flow controller."""

import logging

import httpx
import pytest
from respx import MockRouter

from oidcdemo.core.config import ProviderSettings
from oidcdemo.core.events import EventLog, EventType
from oidcdemo.core.oidc.client import KeycloakClient
from oidcdemo.core.oidc.flows import AuthFlowController, FlowRedirect
from oidcdemo.core.sessions import Session, SessionStore
from tests.conftest import AUTH_URL, LOGOUT_URL, TOKEN_URL, USERINFO_URL

TOKENS = {"access_token": "AT", "id_token": "IT", "refresh_token": "RT", "token_type": "Bearer"}
CLAIMS = {"sub": "1", "preferred_username": "joao", "email": "joao@example.com"}


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture
def controller(
    provider_settings: ProviderSettings, store: SessionStore, event_log: EventLog
) -> AuthFlowController:
    return AuthFlowController(KeycloakClient(provider_settings), store, event_log)


def _messages(event_log: EventLog) -> list[str]:
    return [entry.message for entry in event_log.entries()]


class TestLogin:
    """Tests for the login leg."""

    def test_redirects_to_authorization_endpoint(
        self, controller: AuthFlowController, event_log: EventLog
    ) -> None:
        """Test the redirect target and the published event."""
        outcome = controller.login()

        assert outcome.location.startswith(f"{AUTH_URL}?")
        assert outcome.set_session_cookie is None
        assert "Redirecting to Keycloak for authentication..." in _messages(event_log)


class TestCallback:
    """Tests for the callback leg."""

    def test_successful_login(
        self,
        controller: AuthFlowController,
        store: SessionStore,
        event_log: EventLog,
        respx_mock: MockRouter,
    ) -> None:
        """Test the happy path from code to authenticated session."""
        respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json=TOKENS))
        respx_mock.get(USERINFO_URL).mock(return_value=httpx.Response(200, json=CLAIMS))

        outcome = controller.callback("default", "abcdefghijkl")

        assert outcome.location == "/?auth=success"
        session_id = outcome.set_session_cookie
        assert session_id is not None
        assert session_id != "default"

        session = store.get(session_id)
        assert session == Session(
            is_authenticated=True,
            id_token="IT",
            access_token="AT",
            refresh_token="RT",
            user_info=CLAIMS,
        )

        messages = _messages(event_log)
        assert "Authorization code received: abcdefgh..." in messages
        assert "Tokens received successfully" in messages
        assert "User authenticated: joao" in messages
        assert messages[-1] == "Authentication completed, redirecting to main page"

    def test_existing_session_id_is_reused(
        self, controller: AuthFlowController, store: SessionStore, respx_mock: MockRouter
    ) -> None:
        """Test that a non-default resolved id is kept."""
        respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json=TOKENS))
        respx_mock.get(USERINFO_URL).mock(return_value=httpx.Response(200, json=CLAIMS))

        outcome = controller.callback("S", "code")

        assert outcome.set_session_cookie == "S"
        assert "S" in store

    def test_userinfo_failure_still_authenticates(
        self,
        controller: AuthFlowController,
        store: SessionStore,
        event_log: EventLog,
        respx_mock: MockRouter,
    ) -> None:
        """Test that a failed userinfo call leaves a session without claims."""
        respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json=TOKENS))
        respx_mock.get(USERINFO_URL).mock(return_value=httpx.Response(500))

        outcome = controller.callback("S", "code")

        assert outcome.location == "/?auth=success"
        session = store.get("S")
        assert session is not None
        assert session.is_authenticated
        assert session.access_token == "AT"
        assert session.user_info is None
        assert "Could not fetch user information" in _messages(event_log)

    def test_missing_code(
        self,
        controller: AuthFlowController,
        store: SessionStore,
        event_log: EventLog,
        respx_mock: MockRouter,
    ) -> None:
        """Test a callback without a code makes no provider calls."""
        outcome = controller.callback("default", None)

        assert outcome == FlowRedirect(location="/?error=no_auth_code")
        assert store.size() == 0
        assert len(respx_mock.calls) == 0
        assert event_log.entries()[-1].type is EventType.ERROR

    def test_empty_code_treated_as_missing(self, controller: AuthFlowController) -> None:
        """Test that an empty code string is rejected."""
        assert controller.callback("default", "").location == "/?error=no_auth_code"

    def test_provider_error_logged(
        self, controller: AuthFlowController, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a provider error on the callback reaches the logger."""
        with caplog.at_level(logging.WARNING, logger="oidcdemo.core.oidc.flows"):
            outcome = controller.callback("default", None, "access_denied", "User cancelled")

        assert outcome.location == "/?error=no_auth_code"
        assert "access_denied" in caplog.text

    def test_token_endpoint_rejects_code(
        self,
        controller: AuthFlowController,
        store: SessionStore,
        event_log: EventLog,
        respx_mock: MockRouter,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that a 400 from the token endpoint fails the login."""
        respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(400, json={"error": "invalid_grant"})
        )

        with caplog.at_level(logging.ERROR, logger="oidcdemo.core.oidc.flows"):
            outcome = controller.callback("S", "stale")

        assert outcome == FlowRedirect(location="/?error=auth_failed")
        assert store.size() == 0
        assert "invalid_grant" in caplog.text
        assert event_log.entries()[-1].message == "Error obtaining tokens"

    def test_token_endpoint_unreachable(
        self, controller: AuthFlowController, store: SessionStore, respx_mock: MockRouter
    ) -> None:
        """Test that a transport error fails the login."""
        respx_mock.post(TOKEN_URL).mock(side_effect=httpx.ConnectError("Connection refused"))

        outcome = controller.callback("S", "code")

        assert outcome.location == "/?error=auth_failed"
        assert store.size() == 0


class TestStatus:
    """Tests for the status leg."""

    def test_unknown_session(self, controller: AuthFlowController) -> None:
        """Test the unauthenticated payload."""
        payload = controller.status("default")

        assert payload["server"] == "Server Online"
        assert payload["user"] == "Not Authenticated"
        assert payload["userInfo"] is None
        assert payload["sessions"] == 0
        assert payload["sessionId"] == "default"
        assert payload["timestamp"].endswith("Z")

    def test_authenticated_with_claims(
        self, controller: AuthFlowController, store: SessionStore
    ) -> None:
        """Test the payload for a session with user claims."""
        store.put("S", Session(is_authenticated=True, access_token="AT", user_info=CLAIMS))

        payload = controller.status("S")

        assert payload["user"] == "Authenticated (joao)"
        assert payload["userInfo"] == CLAIMS
        assert payload["sessions"] == 1

    def test_authenticated_without_claims(
        self, controller: AuthFlowController, store: SessionStore
    ) -> None:
        """Test the payload for a session whose userinfo fetch failed."""
        store.put("S", Session(is_authenticated=True, access_token="AT"))

        payload = controller.status("S")

        assert payload["user"] == "Authenticated"
        assert payload["userInfo"] is None

    def test_status_does_not_modify_store(
        self, controller: AuthFlowController, store: SessionStore, event_log: EventLog
    ) -> None:
        """Test repeated status calls leave the store unchanged."""
        store.put("S", Session(is_authenticated=True, access_token="AT"))

        first = controller.status("S")
        second = controller.status("other")

        assert store.size() == 1
        assert "other" not in store
        assert first["user"] == "Authenticated"
        assert second["user"] == "Not Authenticated"
        assert second["logs"] == first["logs"] + 1
        assert event_log.entries()[-1].message == "Status checked for session: other..."


class TestLogout:
    """Tests for the logout leg."""

    def test_logout_with_session(
        self, controller: AuthFlowController, store: SessionStore, event_log: EventLog
    ) -> None:
        """Test the provider logout redirect and session removal."""
        store.put("S", Session(is_authenticated=True, id_token="IT", access_token="AT"))

        outcome = controller.logout("S")

        assert outcome.location.startswith(f"{LOGOUT_URL}?")
        assert "id_token_hint=IT" in outcome.location
        assert outcome.clear_session_cookie
        assert store.get("S") is None
        assert "Redirecting to Keycloak for logout..." in _messages(event_log)

    def test_logout_without_id_token(
        self, controller: AuthFlowController, store: SessionStore
    ) -> None:
        """Test that id_token_hint is omitted when no id token was issued."""
        store.put("S", Session(is_authenticated=True, access_token="AT"))

        outcome = controller.logout("S")

        assert "id_token_hint" not in outcome.location

    def test_logout_without_session(
        self,
        controller: AuthFlowController,
        store: SessionStore,
        event_log: EventLog,
        respx_mock: MockRouter,
    ) -> None:
        """Test logout with no session goes straight to the confirmation page."""
        store.put("other", Session(is_authenticated=True, access_token="AT"))

        outcome = controller.logout("S")

        assert outcome == FlowRedirect(location="/logout-success")
        assert store.size() == 1
        assert len(respx_mock.calls) == 0
        last = event_log.entries()[-1]
        assert last.message == "Logout attempt without active session"
        assert last.type is EventType.WARNING

    def test_second_logout_is_noop(
        self, controller: AuthFlowController, store: SessionStore
    ) -> None:
        """Test that logging out twice only redirects to the provider once."""
        store.put("S", Session(is_authenticated=True, id_token="IT", access_token="AT"))

        controller.logout("S")
        outcome = controller.logout("S")

        assert outcome.location == "/logout-success"
