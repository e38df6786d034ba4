"""OIDC client for the Keycloak realm.

Builds the authorization and logout URLs and performs the two back-channel
calls of the Authorization Code flow: the token exchange and the userinfo
fetch. Failures are reported on the returned response objects instead of
being raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from oidcdemo.core.config import ProviderSettings
from oidcdemo.core.logging import LoggingTransport
from oidcdemo.idp_presets.keycloak import KeycloakEndpoints


@dataclass
class TokenResponse:
    """Represents an OAuth2 token response."""

    access_token: str | None = None
    id_token: str | None = None
    refresh_token: str | None = None
    token_type: str | None = None
    expires_in: int | None = None

    # Raw response for debugging
    raw_response: dict[str, Any] = field(default_factory=dict)

    # Error information
    status_code: int | None = None
    error: str | None = None
    error_description: str | None = None

    @property
    def is_success(self) -> bool:
        """Check if the token response is successful."""
        return self.error is None and bool(self.access_token)


@dataclass
class UserInfoResponse:
    """Represents an OIDC userinfo response."""

    claims: dict[str, Any] = field(default_factory=dict)

    # Error information
    status_code: int | None = None
    error: str | None = None
    error_description: str | None = None

    @property
    def is_success(self) -> bool:
        """Check if the userinfo response is successful."""
        return self.error is None


def _error_fields(response: httpx.Response, default_error: str) -> tuple[str, str]:
    """Extract OAuth error fields from a failed response body."""
    description = f"Request failed with status {response.status_code}"
    try:
        data = response.json()
    except ValueError:
        return default_error, f"{description}: {response.text[:200]}"
    if not isinstance(data, dict):
        return default_error, description
    return (
        str(data.get("error", default_error)),
        str(data.get("error_description", description)),
    )


class KeycloakClient:
    """Client for the Keycloak realm's OpenID Connect endpoints."""

    def __init__(
        self,
        settings: ProviderSettings,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Provider endpoint and client credentials.
            transport: Optional transport to wrap with exchange logging.
        """
        self.settings = settings
        self.endpoints = KeycloakEndpoints(settings.endpoint)
        self._transport = transport
        self._http_client: httpx.Client | None = None

    @property
    def http_client(self) -> httpx.Client:
        """Get or create HTTP client with logging."""
        if self._http_client is None:
            self._http_client = httpx.Client(
                transport=LoggingTransport(self._transport),
                timeout=self.settings.http_timeout,
            )
        return self._http_client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def authorization_url(self) -> str:
        """Build the authorization request URL.

        Returns:
            The URL to redirect the browser to.
        """
        params = {
            "client_id": self.settings.client_id,
            "redirect_uri": self.settings.redirect_uri,
            "response_type": "code",
            "scope": self.settings.scope,
        }
        # quote (not quote_plus) so spaces in scope become %20
        return f"{self.endpoints.authorization_endpoint}?{urlencode(params, quote_via=quote)}"

    def logout_url(self, id_token: str | None = None) -> str:
        """Build the RP-initiated logout URL.

        Args:
            id_token: ID token to pass as ``id_token_hint``, if available.

        Returns:
            The URL to redirect the browser to.
        """
        params = {
            "client_id": self.settings.client_id,
            "post_logout_redirect_uri": self.settings.logout_redirect_uri,
        }
        if id_token:
            params["id_token_hint"] = id_token
        return f"{self.endpoints.logout_endpoint}?{urlencode(params, quote_via=quote)}"

    def exchange_code(self, code: str) -> TokenResponse:
        """Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the callback.

        Returns:
            TokenResponse with access token, id token, etc.
        """
        data = {
            "grant_type": "authorization_code",
            "client_id": self.settings.client_id,
            "client_secret": self.settings.client_secret,
            "code": code,
            "redirect_uri": self.settings.redirect_uri,
        }

        try:
            response = self.http_client.post(
                self.endpoints.token_endpoint,
                data=data,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            return TokenResponse(
                error="http_error",
                error_description=f"HTTP error during token exchange: {e}",
            )

        if not response.is_success:
            error, description = _error_fields(response, "token_error")
            return TokenResponse(
                status_code=response.status_code,
                error=error,
                error_description=description,
            )

        try:
            response_data = response.json()
        except ValueError:
            return TokenResponse(
                status_code=response.status_code,
                error="invalid_response",
                error_description="Token endpoint returned a non-JSON body",
            )

        if not isinstance(response_data, dict) or not response_data.get("access_token"):
            return TokenResponse(
                status_code=response.status_code,
                error="invalid_response",
                error_description="Token endpoint response has no access_token",
            )

        return TokenResponse(
            access_token=response_data.get("access_token"),
            id_token=response_data.get("id_token"),
            refresh_token=response_data.get("refresh_token"),
            token_type=response_data.get("token_type"),
            expires_in=response_data.get("expires_in"),
            raw_response=response_data,
            status_code=response.status_code,
        )

    def get_userinfo(self, access_token: str) -> UserInfoResponse:
        """Fetch user information from the userinfo endpoint.

        Args:
            access_token: Bearer token for authorization.

        Returns:
            UserInfoResponse with user claims.
        """
        try:
            response = self.http_client.get(
                self.endpoints.userinfo_endpoint,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            return UserInfoResponse(
                error="http_error",
                error_description=f"HTTP error fetching userinfo: {e}",
            )

        if not response.is_success:
            error, description = _error_fields(response, "userinfo_error")
            return UserInfoResponse(
                status_code=response.status_code,
                error=error,
                error_description=description,
            )

        try:
            claims = response.json()
        except ValueError:
            return UserInfoResponse(
                status_code=response.status_code,
                error="invalid_response",
                error_description="UserInfo endpoint returned a non-JSON body",
            )

        if not isinstance(claims, dict):
            return UserInfoResponse(
                status_code=response.status_code,
                error="invalid_response",
                error_description="UserInfo endpoint did not return a claims object",
            )

        return UserInfoResponse(claims=claims, status_code=response.status_code)
