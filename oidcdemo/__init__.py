"""oidcdemo - OAuth 2.0 / OpenID Connect Authorization Code flow demo server."""

__version__ = "0.1.0"
