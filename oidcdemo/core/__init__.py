"""Core flow, session and logging services."""

from oidcdemo.core.events import EventLog, EventType, LogEntry
from oidcdemo.core.logging import (
    HTTPExchange,
    LoggingTransport,
    configure_logging,
    redact_sensitive,
)
from oidcdemo.core.sessions import Session, SessionStore, resolve_session_id

__all__ = [
    "EventLog",
    "EventType",
    "HTTPExchange",
    "LogEntry",
    "LoggingTransport",
    "Session",
    "SessionStore",
    "configure_logging",
    "redact_sensitive",
    "resolve_session_id",
]
