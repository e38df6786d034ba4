"""Keycloak endpoint layout and client setup guide.

Keycloak uses a realm-based architecture where each realm is an isolated
authentication domain with its own users and clients. Every OIDC endpoint
lives under the realm URL at a fixed path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit


@dataclass(frozen=True)
class KeycloakEndpoints:
    """OIDC endpoints of one Keycloak realm.

    Args:
        realm_url: Realm URL, e.g. ``https://keycloak.example.com/realms/demo``.
    """

    realm_url: str

    @property
    def base(self) -> str:
        return self.realm_url.rstrip("/")

    @property
    def issuer(self) -> str:
        """Get the OIDC issuer URL."""
        return self.base

    @property
    def discovery_url(self) -> str:
        """Get the OIDC well-known configuration URL."""
        return f"{self.base}/.well-known/openid-configuration"

    @property
    def authorization_endpoint(self) -> str:
        """Get the OIDC authorization endpoint."""
        return f"{self.base}/protocol/openid-connect/auth"

    @property
    def token_endpoint(self) -> str:
        """Get the OIDC token endpoint."""
        return f"{self.base}/protocol/openid-connect/token"

    @property
    def userinfo_endpoint(self) -> str:
        """Get the OIDC userinfo endpoint."""
        return f"{self.base}/protocol/openid-connect/userinfo"

    @property
    def jwks_uri(self) -> str:
        """Get the OIDC JWKS URI."""
        return f"{self.base}/protocol/openid-connect/certs"

    @property
    def logout_endpoint(self) -> str:
        """Get the OIDC logout endpoint."""
        return f"{self.base}/protocol/openid-connect/logout"

    def to_dict(self) -> dict[str, Any]:
        return {
            "issuer": self.issuer,
            "discovery_url": self.discovery_url,
            "authorization_endpoint": self.authorization_endpoint,
            "token_endpoint": self.token_endpoint,
            "userinfo_endpoint": self.userinfo_endpoint,
            "jwks_uri": self.jwks_uri,
            "logout_endpoint": self.logout_endpoint,
        }


KEYCLOAK_SETUP_GUIDE = """
# Keycloak Client Setup Guide

This guide walks you through setting up a Keycloak realm and client for the
oidcdemo server.

## Prerequisites

- Keycloak server running (Docker: `docker run -p 8080:8080 quay.io/keycloak/keycloak start-dev`)
- Admin access to the Keycloak console

## 1. Create a Realm

1. Log into the Keycloak Admin Console
2. Open the realm dropdown (top-left) and click "Create Realm"
3. Enter a realm name (e.g., "demo") and click "Create"

## 2. OIDC Client Setup

1. Go to Clients -> Create Client
2. Select "OpenID Connect" as client type
3. Enter Client ID (e.g., "oidcdemo")
4. Click Next, configure:
   - **Client authentication**: ON (confidential client)
   - **Standard flow**: ON
5. Click Next, configure:
   - **Valid redirect URIs**: `{redirect_uri}`
   - **Valid post logout redirect URIs**: `{logout_redirect_uri}`
   - **Web origins**: `{origin}`
6. Click Save
7. In the Credentials tab, copy the Client Secret

## 3. Create a Test User

1. Go to Users -> Add User
2. Fill in Username, Email, First Name and Last Name, then click Create
3. In the Credentials tab, set a password with "Temporary" OFF

## 4. Point oidcdemo at the realm

```
export KEYCLOAK_ENDPOINT={realm_url}
export KEYCLOAK_CLIENT_ID=oidcdemo
export KEYCLOAK_CLIENT_SECRET=<secret from step 2.7>
oidcdemo serve
```

## Quick Reference URLs

| Endpoint | URL |
|----------|-----|
| OIDC Discovery | `{realm_url}/.well-known/openid-configuration` |
| OIDC Auth | `{realm_url}/protocol/openid-connect/auth` |
| OIDC Token | `{realm_url}/protocol/openid-connect/token` |
| OIDC UserInfo | `{realm_url}/protocol/openid-connect/userinfo` |
| OIDC Logout | `{realm_url}/protocol/openid-connect/logout` |

## Troubleshooting

### "Invalid redirect URI"
- Ensure KEYCLOAK_REDIRECT_URI exactly matches a "Valid redirect URI" in Keycloak
- Check for trailing slashes

### "Invalid parameter: redirect_uri" on logout
- Add KEYCLOAK_LOGOUT_REDIRECT_URI to "Valid post logout redirect URIs"

### Dashboard shows `error=auth_failed`
- Check the server log for the token endpoint response
- Verify the client secret and that "Client authentication" is ON
"""


def get_setup_guide(
    realm_url: str,
    redirect_uri: str,
    logout_redirect_uri: str,
) -> str:
    """Get the Keycloak setup guide customized with this server's URLs.

    Args:
        realm_url: Keycloak realm URL.
        redirect_uri: Callback URI registered for the client.
        logout_redirect_uri: Post-logout redirect URI registered for the client.

    Returns:
        Markdown-formatted setup guide.
    """
    parts = urlsplit(redirect_uri)
    origin = f"{parts.scheme}://{parts.netloc}"
    return (
        KEYCLOAK_SETUP_GUIDE.replace("{realm_url}", KeycloakEndpoints(realm_url).base)
        .replace("{redirect_uri}", redirect_uri)
        .replace("{logout_redirect_uri}", logout_redirect_uri)
        .replace("{origin}", origin)
    )
