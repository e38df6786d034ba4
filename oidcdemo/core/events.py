"""In-memory event log shown on the dashboard.

Keeps a ring buffer of recent flow events and fans each new event out to
subscribers (the ``/api/logs`` Server-Sent Events streams). Every event is
also written to the ``oidcdemo.events`` logger.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

logger = logging.getLogger("oidcdemo.events")

DEFAULT_CAPACITY = 100


class EventType(StrEnum):
    """Event categories, used by the dashboard for styling."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    EventType.INFO: logging.INFO,
    EventType.SUCCESS: logging.INFO,
    EventType.WARNING: logging.WARNING,
    EventType.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class LogEntry:
    """A single dashboard event."""

    message: str
    type: EventType = EventType.INFO
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire format used by the push stream."""
        return {
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
            "message": self.message,
            "type": str(self.type),
        }

    def to_sse(self) -> str:
        """Format as a Server-Sent Events ``data:`` frame."""
        return f"data: {json.dumps(self.to_dict())}\n\n"


class Subscription:
    """A subscriber's view of the event log.

    Holds the events buffered at subscription time and a queue that
    receives everything published afterwards.
    """

    def __init__(self, backlog: list[LogEntry]) -> None:
        self.backlog = backlog
        self.queue: queue.Queue[LogEntry] = queue.Queue()

    def get(self, timeout: float | None = None) -> LogEntry | None:
        """Wait for the next published event.

        Returns:
            The event, or None if the timeout elapsed first.
        """
        try:
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None


class EventLog:
    """Ring buffer of recent events with publish/subscribe fan-out."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._subscribers: list[Subscription] = []
        self._lock = threading.Lock()

    def publish(self, message: str, type: EventType | str = EventType.INFO) -> LogEntry:
        """Record an event and deliver it to all subscribers.

        Publishing never blocks on a subscriber.

        Args:
            message: Human-readable event text.
            type: Event category.

        Returns:
            The recorded entry.

        Raises:
            ValueError: If ``type`` is not a known event category.
        """
        entry = LogEntry(message=message, type=EventType(type))

        with self._lock:
            self._entries.append(entry)
            subscribers = list(self._subscribers)

        for subscription in subscribers:
            subscription.queue.put_nowait(entry)

        logger.log(_LOG_LEVELS[entry.type], message)
        return entry

    def subscribe(self) -> Subscription:
        """Register a new subscriber, capturing the current buffer as backlog."""
        with self._lock:
            subscription = Subscription(list(self._entries))
            self._subscribers.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscriber. Removing an unknown subscriber is a no-op."""
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)

    def entries(self) -> list[LogEntry]:
        """Get a snapshot of the buffered events, oldest first."""
        with self._lock:
            return list(self._entries)

    @property
    def subscriber_count(self) -> int:
        """Number of active subscribers."""
        with self._lock:
            return len(self._subscribers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
