"""Web routes for oidcdemo."""

from __future__ import annotations

from pathlib import Path
from typing import cast

from flask import Blueprint, Flask, current_app, render_template, request

from oidcdemo.core.events import EventLog, EventType
from oidcdemo.core.oidc.flows import AuthFlowController
from oidcdemo.core.sessions import resolve_session_id

# Get the directories relative to this package
_web_dir = Path(__file__).parent.parent
_templates_dir = _web_dir / "templates"
_static_dir = _web_dir / "static"

main_bp = Blueprint(
    "main",
    __name__,
    template_folder=str(_templates_dir),
    static_folder=str(_static_dir),
    static_url_path="/public",
)


def get_flow_controller() -> AuthFlowController:
    """Get the flow controller from the app context."""
    return cast("AuthFlowController", current_app.config["FLOW_CONTROLLER"])


def get_event_log() -> EventLog:
    """Get the dashboard event log from the app context."""
    return cast("EventLog", current_app.config["EVENT_LOG"])


def current_session_id() -> str:
    """Resolve the session id of the current request."""
    return resolve_session_id(request.cookies, request.headers)


@main_bp.route("/")
def index() -> str:
    """Render the main dashboard."""
    html = render_template("index.html")
    get_event_log().publish("Main dashboard accessed", EventType.INFO)
    return html


@main_bp.route("/logout-success")
def logout_success() -> str:
    """Render the logout confirmation page."""
    get_event_log().publish("Logout completed successfully", EventType.SUCCESS)
    return render_template("logout_success.html")


@main_bp.route("/health")
def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


def init_app(app: Flask) -> None:
    """Register blueprints with the Flask app."""
    from oidcdemo.web.routes.api import api_bp
    from oidcdemo.web.routes.auth import auth_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp)
