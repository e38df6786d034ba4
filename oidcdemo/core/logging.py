"""Protocol logging for the identity provider calls.

Provides HTTP-level logging of the token and userinfo exchanges for
debugging integration issues, with sensitive data redacted.

Log levels:
- ERROR: Only transport failures
- INFO: One line per exchange (method, URL, status, duration)
- DEBUG: Adds request/response headers and bodies (redacted)
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import httpx

# Module logger
logger = logging.getLogger("oidcdemo.protocol")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Patterns for sensitive data redaction
SENSITIVE_PATTERNS = [
    # OAuth/OIDC form and query parameters
    (re.compile(r"(client_secret=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(code=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(access_token=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(refresh_token=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(id_token=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(id_token_hint=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    # HTTP headers (with or without "Authorization:" prefix for header dict values)
    (re.compile(r"(Authorization:\s*Bearer\s+)[^\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(Authorization:\s*Basic\s+)[^\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"^(Bearer\s+)[^\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"^(Basic\s+)[^\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    # Cookies
    (re.compile(r"(Cookie:\s*)[^\r\n]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(Set-Cookie:\s*)[^\r\n]+", re.IGNORECASE), r"\1[REDACTED]"),
    # JSON fields
    (re.compile(r'"(client_secret)"\s*:\s*"[^"]+"', re.IGNORECASE), r'"\1": "[REDACTED]"'),
    (re.compile(r'"(access_token)"\s*:\s*"[^"]+"', re.IGNORECASE), r'"\1": "[REDACTED]"'),
    (re.compile(r'"(refresh_token)"\s*:\s*"[^"]+"', re.IGNORECASE), r'"\1": "[REDACTED]"'),
    (re.compile(r'"(id_token)"\s*:\s*"[^"]+"', re.IGNORECASE), r'"\1": "[REDACTED]"'),
]


def redact_sensitive(text: str) -> str:
    """Redact sensitive information from text.

    Args:
        text: Text that may contain sensitive data.

    Returns:
        Text with sensitive data redacted.
    """
    result = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


@dataclass
class HTTPExchange:
    """Represents a single HTTP request/response exchange."""

    id: str
    timestamp: datetime
    method: str
    url: str
    request_headers: dict[str, str]
    request_body: str | None = None
    response_status: int | None = None
    response_headers: dict[str, str] = field(default_factory=dict)
    response_body: str | None = None
    duration_ms: float | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a redacted dictionary for serialization."""

        def process(value: str | None) -> str | None:
            return None if value is None else redact_sensitive(value)

        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "method": self.method,
            "url": redact_sensitive(self.url),
            "request_headers": {k: redact_sensitive(v) for k, v in self.request_headers.items()},
            "request_body": process(self.request_body),
            "response_status": self.response_status,
            "response_headers": {k: redact_sensitive(v) for k, v in self.response_headers.items()},
            "response_body": process(self.response_body),
            "duration_ms": self.duration_ms,
            "error": self.error,
        }

    def format_log(self, level: int = logging.INFO) -> str:
        """Format the exchange for logging.

        Args:
            level: Log level determines how much detail to include.

        Returns:
            Formatted, redacted log string.
        """
        status = self.response_status or "ERROR"
        lines = [f"HTTP {self.method} {redact_sensitive(self.url)} -> {status}"]

        if self.duration_ms is not None:
            lines.append(f"  Duration: {self.duration_ms:.1f}ms")

        if self.error:
            lines.append(f"  Error: {self.error}")

        if level <= logging.DEBUG:
            lines.append("  Request Headers:")
            for name, value in self.request_headers.items():
                lines.append(f"    {name}: {redact_sensitive(value)}")

            if self.request_body:
                lines.append(f"  Request Body: {redact_sensitive(self.request_body)[:2000]}")

            if self.response_headers:
                lines.append("  Response Headers:")
                for name, value in self.response_headers.items():
                    lines.append(f"    {name}: {redact_sensitive(value)}")

            if self.response_body:
                body = redact_sensitive(self.response_body)
                lines.append(f"  Response Body: {body[:2000]}{'...' if len(body) > 2000 else ''}")

        return "\n".join(lines)


def log_exchange(exchange: HTTPExchange) -> None:
    """Write an HTTP exchange to the protocol logger."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(exchange.format_log(logging.DEBUG))
    else:
        logger.info(exchange.format_log(logging.INFO))

    if exchange.error:
        logger.error(f"HTTP error: {exchange.method} {redact_sensitive(exchange.url)}: {exchange.error}")


class LoggingTransport(httpx.BaseTransport):
    """HTTPX transport that logs all HTTP exchanges."""

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        """Initialize the logging transport.

        Args:
            transport: Transport to delegate to. Defaults to httpx.HTTPTransport.
        """
        self._transport = transport or httpx.HTTPTransport()
        self._exchange_counter = 0

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        """Handle an HTTP request with logging.

        Args:
            request: The outgoing request.

        Returns:
            The response from the server.
        """
        self._exchange_counter += 1
        start_time = time.perf_counter()

        request_body = None
        if request.content:
            try:
                request_body = request.content.decode("utf-8")
            except UnicodeDecodeError:
                request_body = "<binary content>"

        exchange = HTTPExchange(
            id=f"http_{self._exchange_counter:04d}",
            timestamp=datetime.now(UTC),
            method=request.method,
            url=str(request.url),
            request_headers=dict(request.headers),
            request_body=request_body,
        )

        try:
            response = self._transport.handle_request(request)
        except Exception as e:
            exchange.duration_ms = (time.perf_counter() - start_time) * 1000
            exchange.error = str(e) or type(e).__name__
            log_exchange(exchange)
            raise

        exchange.duration_ms = (time.perf_counter() - start_time) * 1000
        exchange.response_status = response.status_code
        exchange.response_headers = dict(response.headers)

        # Read the body so it can be logged; httpx serves it again from memory
        response.read()
        try:
            exchange.response_body = response.text
        except UnicodeDecodeError:
            exchange.response_body = "<binary content>"

        log_exchange(exchange)
        return response

    def close(self) -> None:
        """Close the underlying transport."""
        self._transport.close()


def configure_logging(
    level: int | str = logging.INFO,
    log_file: str | None = None,
) -> logging.Logger:
    """Configure the ``oidcdemo`` logger hierarchy.

    Args:
        level: Log level number or name (ERROR, WARNING, INFO, DEBUG).
        log_file: Optional file path to write logs to.

    Returns:
        The configured ``oidcdemo`` package logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    package_logger = logging.getLogger("oidcdemo")
    package_logger.setLevel(level)

    # Remove existing handlers
    package_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    # Keep httpx from logging unredacted request lines
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    logging.getLogger("httpcore").setLevel(max(level, logging.WARNING))

    return package_logger
