"""Login, callback and logout routes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import Blueprint, redirect, request

from oidcdemo.core.oidc.flows import FlowRedirect
from oidcdemo.core.sessions import SESSION_COOKIE_MAX_AGE, SESSION_COOKIE_NAME
from oidcdemo.web.routes import current_session_id, get_flow_controller

if TYPE_CHECKING:
    from werkzeug.wrappers import Response as WerkzeugResponse

auth_bp = Blueprint("auth", __name__)


def to_response(outcome: FlowRedirect) -> WerkzeugResponse:
    """Turn a flow outcome into a 302 with the matching cookie header."""
    response = redirect(outcome.location, code=302)

    if outcome.set_session_cookie is not None:
        response.set_cookie(
            SESSION_COOKIE_NAME,
            outcome.set_session_cookie,
            max_age=SESSION_COOKIE_MAX_AGE,
            path="/",
            httponly=True,
        )
    elif outcome.clear_session_cookie:
        response.set_cookie(
            SESSION_COOKIE_NAME,
            "",
            max_age=0,
            path="/",
            httponly=True,
        )

    return response


@auth_bp.route("/login")
def login() -> WerkzeugResponse:
    """Redirect to the Keycloak authorization endpoint."""
    return to_response(get_flow_controller().login())


@auth_bp.route("/callback")
def callback() -> WerkzeugResponse:
    """Handle the authorization callback from Keycloak."""
    outcome = get_flow_controller().callback(
        session_id=current_session_id(),
        code=request.args.get("code"),
        error=request.args.get("error"),
        error_description=request.args.get("error_description"),
    )
    return to_response(outcome)


@auth_bp.route("/logout")
def logout() -> WerkzeugResponse:
    """End the local session and redirect to Keycloak's logout endpoint."""
    return to_response(get_flow_controller().logout(current_session_id()))
