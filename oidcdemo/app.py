"""Flask application factory."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from oidcdemo.core.events import EventLog, EventType
from oidcdemo.core.oidc.client import KeycloakClient
from oidcdemo.core.oidc.flows import AuthFlowController
from oidcdemo.core.sessions import SessionStore

if TYPE_CHECKING:
    import httpx
    from flask.typing import ResponseReturnValue

    from oidcdemo.core.config import AppConfig

logger = logging.getLogger(__name__)


def create_app(
    config: dict | None = None,
    app_config: AppConfig | None = None,
    transport: httpx.BaseTransport | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Optional Flask configuration overrides.
        app_config: Application configuration. Loads from file/env if not provided.
        transport: Optional httpx transport for the provider client.

    Returns:
        Configured Flask application instance.
    """
    if app_config is None:
        from oidcdemo.core.config import load_config

        app_config = load_config()

    app = Flask(__name__)

    events = EventLog()
    sessions = SessionStore()
    client = KeycloakClient(app_config.provider, transport=transport)

    app.config.from_mapping(
        APP_CONFIG=app_config,
        EVENT_LOG=events,
        SESSION_STORE=sessions,
        FLOW_CONTROLLER=AuthFlowController(client=client, sessions=sessions, events=events),
        SSE_KEEPALIVE_SECONDS=15.0,
    )

    if config:
        app.config.from_mapping(config)

    from oidcdemo.web import routes

    routes.init_app(app)
    register_error_handlers(app)

    return app


def register_error_handlers(app: Flask) -> None:
    """Install the catch-all handler that turns unhandled errors into JSON 500s."""

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception) -> ResponseReturnValue:
        # 404/405 and friends keep their own responses
        if isinstance(error, HTTPException):
            return error

        logger.exception("Unhandled error while processing request")
        events: EventLog = app.config["EVENT_LOG"]
        events.publish(f"Internal server error: {error}", EventType.ERROR)

        body = {
            "error": "Internal server error",
            "message": str(error),
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        return jsonify(body), 500


def run_server(
    app_config: AppConfig | None = None,
    host: str | None = None,
    port: int | None = None,
) -> None:
    """Run the Flask development server.

    Args:
        app_config: Application configuration. Loads from file/env if not provided.
        host: Override host from config.
        port: Override port from config.
    """
    from oidcdemo.core.config import load_config
    from oidcdemo.core.logging import configure_logging

    if app_config is None:
        app_config = load_config()

    configure_logging(app_config.logging.level, app_config.logging.file)

    server_host = host or app_config.server.host
    server_port = port or app_config.server.port

    app = create_app(app_config=app_config)
    app.debug = app_config.server.debug

    provider = app_config.provider
    logger.info(
        "Keycloak configuration: endpoint=%s client_id=%s client_secret=%s "
        "redirect_uri=%s logout_redirect_uri=%s scope=%r",
        provider.endpoint,
        provider.client_id,
        provider.to_dict()["client_secret"] or "<empty>",
        provider.redirect_uri,
        provider.logout_redirect_uri,
        provider.scope,
    )
    if not provider.client_id or not provider.client_secret:
        logger.warning("KEYCLOAK_CLIENT_ID or KEYCLOAK_CLIENT_SECRET is empty; token exchange will fail")

    base_url = f"http://{server_host}:{server_port}"
    events: EventLog = app.config["EVENT_LOG"]
    events.publish(f"Test server started at {base_url}", EventType.SUCCESS)
    events.publish(f"Access control panel: {base_url}", EventType.INFO)
    events.publish(f"Login endpoint: {base_url}/login", EventType.INFO)
    events.publish(f"Logout endpoint: {base_url}/logout", EventType.INFO)
    events.publish(f"Status endpoint: {base_url}/api/status", EventType.INFO)
    events.publish(f"Real-time logs: {base_url}/api/logs", EventType.INFO)

    app.run(host=server_host, port=server_port, threaded=True)
