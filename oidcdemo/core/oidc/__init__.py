"""OpenID Connect Authorization Code flow."""

from oidcdemo.core.oidc.client import KeycloakClient, TokenResponse, UserInfoResponse
from oidcdemo.core.oidc.flows import AuthFlowController, CallbackError, FlowRedirect

__all__ = [
    "AuthFlowController",
    "CallbackError",
    "FlowRedirect",
    "KeycloakClient",
    "TokenResponse",
    "UserInfoResponse",
]
