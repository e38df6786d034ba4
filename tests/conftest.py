"""Pytest configuration and fixtures."""

from collections.abc import Generator
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

from oidcdemo.app import create_app
from oidcdemo.core.config import AppConfig, ProviderSettings
from oidcdemo.core.events import EventLog
from oidcdemo.core.sessions import SessionStore

REALM_URL = "https://idp.test/realms/demo"
AUTH_URL = f"{REALM_URL}/protocol/openid-connect/auth"
TOKEN_URL = f"{REALM_URL}/protocol/openid-connect/token"
USERINFO_URL = f"{REALM_URL}/protocol/openid-connect/userinfo"
LOGOUT_URL = f"{REALM_URL}/protocol/openid-connect/logout"

_ENV_VARS = (
    "KEYCLOAK_ENDPOINT",
    "KEYCLOAK_CLIENT_ID",
    "KEYCLOAK_CLIENT_SECRET",
    "KEYCLOAK_REDIRECT_URI",
    "KEYCLOAK_LOGOUT_REDIRECT_URI",
    "KEYCLOAK_SCOPE",
    "PORT",
    "OIDCDEMO_HOST",
    "OIDCDEMO_DEBUG",
    "OIDCDEMO_HTTP_TIMEOUT",
    "OIDCDEMO_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate tests from the developer's environment and config file."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OIDCDEMO_CONFIG", str(tmp_path / "missing-config.yaml"))


@pytest.fixture
def provider_settings() -> ProviderSettings:
    """Provider settings pointing at a fake realm."""
    return ProviderSettings(
        endpoint=REALM_URL,
        client_id="demo-client",
        client_secret="demo-secret",
        redirect_uri="http://localhost:3000/callback",
        logout_redirect_uri="http://localhost:3000/logout-success",
        scope="openid profile email",
    )


@pytest.fixture
def app(provider_settings: ProviderSettings) -> Generator[Flask, None, None]:
    """Create application for testing."""
    app = create_app(
        {
            "TESTING": True,
            "SSE_KEEPALIVE_SECONDS": 0.05,
        },
        app_config=AppConfig(provider=provider_settings),
    )
    yield app


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    """Create test client."""
    return app.test_client()


@pytest.fixture
def sessions(app: Flask) -> SessionStore:
    """The application's session store."""
    store: SessionStore = app.config["SESSION_STORE"]
    return store


@pytest.fixture
def events(app: Flask) -> EventLog:
    """The application's dashboard event log."""
    event_log: EventLog = app.config["EVENT_LOG"]
    return event_log
