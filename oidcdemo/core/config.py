"""Application configuration management.

Loads configuration from config.yaml files and environment variables.
Environment variables take precedence over config file settings.

Provider settings use the ``KEYCLOAK_*`` variables and the server port uses
``PORT``; everything else uses the ``OIDCDEMO_`` prefix.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# Default config locations
DEFAULT_CONFIG_DIR = Path.home() / ".oidcdemo"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

# Environment variable prefix
ENV_PREFIX = "OIDCDEMO_"
PROVIDER_ENV_PREFIX = "KEYCLOAK_"

DEFAULT_ENDPOINT = "http://localhost:8080/realms/demo"
DEFAULT_REDIRECT_URI = "http://localhost:3000/callback"
DEFAULT_LOGOUT_REDIRECT_URI = "http://localhost:3000/logout-success"
DEFAULT_SCOPE = "openid profile email"
DEFAULT_HTTP_TIMEOUT = 10.0


class ConfigError(ValueError):
    """Raised when a configuration value cannot be parsed."""


@dataclass(frozen=True)
class ProviderSettings:
    """Identity provider (Keycloak realm) client settings."""

    endpoint: str = DEFAULT_ENDPOINT
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = DEFAULT_REDIRECT_URI
    logout_redirect_uri: str = DEFAULT_LOGOUT_REDIRECT_URI
    scope: str = DEFAULT_SCOPE
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProviderSettings:
        """Create ProviderSettings from a dictionary."""
        return cls(
            endpoint=str(data.get("endpoint", DEFAULT_ENDPOINT)),
            client_id=str(data.get("client_id") or ""),
            client_secret=str(data.get("client_secret") or ""),
            redirect_uri=str(data.get("redirect_uri", DEFAULT_REDIRECT_URI)),
            logout_redirect_uri=str(
                data.get("logout_redirect_uri", DEFAULT_LOGOUT_REDIRECT_URI)
            ),
            scope=str(data.get("scope", DEFAULT_SCOPE)),
            http_timeout=_parse_float(
                "provider.http_timeout", data.get("http_timeout", DEFAULT_HTTP_TIMEOUT)
            ),
        )

    def to_dict(self, include_secret: bool = False) -> dict[str, Any]:
        """Convert to dictionary for serialization.

        Args:
            include_secret: If False, the client secret is masked.
        """
        return {
            "endpoint": self.endpoint,
            "client_id": self.client_id,
            "client_secret": self.client_secret if include_secret else mask_secret(self.client_secret),
            "redirect_uri": self.redirect_uri,
            "logout_redirect_uri": self.logout_redirect_uri,
            "scope": self.scope,
            "http_timeout": self.http_timeout,
        }


@dataclass(frozen=True)
class ServerSettings:
    """Server configuration settings."""

    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServerSettings:
        """Create ServerSettings from a dictionary."""
        return cls(
            host=str(data.get("host", "127.0.0.1")),
            port=_parse_int("server.port", data.get("port", 3000)),
            debug=bool(data.get("debug", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
        }


@dataclass(frozen=True)
class LoggingSettings:
    """Python logging settings."""

    level: str = "INFO"
    file: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoggingSettings:
        """Create LoggingSettings from a dictionary."""
        return cls(
            level=str(data.get("level", "INFO")).upper(),
            file=data.get("file") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"level": self.level, "file": self.file}


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""

    provider: ProviderSettings = field(default_factory=ProviderSettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    config_path: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], config_path: Path | None = None) -> AppConfig:
        """Create AppConfig from a dictionary."""
        return cls(
            provider=ProviderSettings.from_dict(data.get("provider") or {}),
            server=ServerSettings.from_dict(data.get("server") or {}),
            logging=LoggingSettings.from_dict(data.get("logging") or {}),
            config_path=config_path,
        )

    def to_dict(self, include_secret: bool = False) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "provider": self.provider.to_dict(include_secret=include_secret),
            "server": self.server.to_dict(),
            "logging": self.logging.to_dict(),
        }


def mask_secret(value: str) -> str:
    """Mask a secret for display, keeping only a short prefix."""
    if not value:
        return ""
    if len(value) <= 4:
        return "****"
    return f"{value[:4]}****"


def _parse_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer (got {value!r})") from None


def _parse_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number (got {value!r})") from None


def _get_env_bool(key: str, default: bool) -> bool:
    """Get a boolean from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _read_config_file(file_path: Path) -> AppConfig:
    try:
        with open(file_path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Ignoring unreadable config file {file_path}: {e}")
        return AppConfig()

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {file_path}: top level is not a mapping")
        return AppConfig()

    return AppConfig.from_dict(data, config_path=file_path)


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load application configuration.

    Configuration is loaded in this order (later values override earlier):
    1. Default values
    2. config.yaml file (if exists)
    3. Environment variables

    Args:
        config_path: Path to config file. Uses OIDCDEMO_CONFIG or the default
            location if not specified.

    Returns:
        AppConfig with merged settings.

    Raises:
        ConfigError: If a numeric setting cannot be parsed.
    """
    config = AppConfig()

    file_path = config_path
    if file_path is None and os.environ.get(f"{ENV_PREFIX}CONFIG"):
        file_path = Path(os.environ[f"{ENV_PREFIX}CONFIG"]).expanduser()
    file_path = file_path or DEFAULT_CONFIG_FILE

    if file_path.exists():
        config = _read_config_file(file_path)

    # Provider settings
    provider_overrides: dict[str, Any] = {}
    for env_name, attr in (
        ("ENDPOINT", "endpoint"),
        ("CLIENT_ID", "client_id"),
        ("CLIENT_SECRET", "client_secret"),
        ("REDIRECT_URI", "redirect_uri"),
        ("LOGOUT_REDIRECT_URI", "logout_redirect_uri"),
        ("SCOPE", "scope"),
    ):
        value = os.environ.get(f"{PROVIDER_ENV_PREFIX}{env_name}")
        if value:
            provider_overrides[attr] = value

    if os.environ.get(f"{ENV_PREFIX}HTTP_TIMEOUT"):
        provider_overrides["http_timeout"] = _parse_float(
            f"{ENV_PREFIX}HTTP_TIMEOUT", os.environ[f"{ENV_PREFIX}HTTP_TIMEOUT"]
        )

    # Server settings
    server_overrides: dict[str, Any] = {}
    if os.environ.get(f"{ENV_PREFIX}HOST"):
        server_overrides["host"] = os.environ[f"{ENV_PREFIX}HOST"]

    if os.environ.get("PORT"):
        server_overrides["port"] = _parse_int("PORT", os.environ["PORT"])

    server_overrides["debug"] = _get_env_bool(f"{ENV_PREFIX}DEBUG", config.server.debug)

    logging_overrides: dict[str, Any] = {}
    if os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
        logging_overrides["level"] = os.environ[f"{ENV_PREFIX}LOG_LEVEL"].upper()

    return replace(
        config,
        provider=replace(config.provider, **provider_overrides),
        server=replace(config.server, **server_overrides),
        logging=replace(config.logging, **logging_overrides),
    )


def get_default_config_yaml() -> str:
    """Get the default config.yaml content as a string.

    Useful for generating example configuration files.
    """
    return f"""\
# oidcdemo Configuration File
# Environment variables override these settings
# (KEYCLOAK_* for the provider, PORT for the port, OIDCDEMO_* for the rest)

provider:
  # Keycloak realm URL; the /protocol/openid-connect/* endpoints hang off it
  endpoint: "{DEFAULT_ENDPOINT}"

  # Confidential client credentials from the realm's Clients page
  client_id: ""
  client_secret: ""

  # Must match the client's "Valid redirect URIs"
  redirect_uri: "{DEFAULT_REDIRECT_URI}"

  # Must match the client's "Valid post logout redirect URIs"
  logout_redirect_uri: "{DEFAULT_LOGOUT_REDIRECT_URI}"

  scope: "{DEFAULT_SCOPE}"

  # Seconds to wait for the token and userinfo endpoints
  http_timeout: {DEFAULT_HTTP_TIMEOUT}

server:
  host: "127.0.0.1"
  port: 3000
  debug: false

logging:
  # ERROR, WARNING, INFO or DEBUG (DEBUG includes redacted HTTP headers)
  level: "INFO"
  # file: ~/.oidcdemo/oidcdemo.log
"""
