"""Fixed-capacity diagnostic event log with synchronous subscribers."""

import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional

from schemas.event_log import EventLogEntry

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100
DEFAULT_HISTORY_LIMIT = 25

Subscriber = Callable[[EventLogEntry], None]


class BoundedEventLog:
    """Insertion-ordered event history holding at most ``capacity`` entries.

    Entries beyond capacity evict the oldest one. Subscribers are notified
    synchronously with their own copy of each entry; nothing is buffered for
    them, so an event recorded while nobody listens is only kept in the log.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        *,
        source: str = "CardanoTransactionService",
        silent: bool = False,
        sink: Optional[logging.Logger] = None,
    ):
        if capacity <= 0:
            raise ValueError(f"Event log capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.source = source
        self.silent = silent
        self._sink = sink or logger
        self._entries: Deque[EventLogEntry] = deque(maxlen=capacity)
        self._subscribers: List[Subscriber] = []

    def __len__(self) -> int:
        return len(self._entries)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for new entries. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def record(
        self, event: str, payload: Optional[Dict[str, Any]] = None
    ) -> EventLogEntry:
        """Append an event, notify subscribers and echo it to the log sink."""
        entry = EventLogEntry(event=event, payload=dict(payload or {}))
        self._entries.append(entry)

        for callback in list(self._subscribers):
            try:
                callback(entry.model_copy(deep=True))
            except Exception:
                logger.exception(f"Event log subscriber failed for '{event}'")

        if not self.silent:
            self._sink.info(
                f"[{self.source}] {event}",
                extra={"event": event, "payload": entry.payload},
            )
        return entry

    def recent(self, limit: int = DEFAULT_HISTORY_LIMIT) -> List[EventLogEntry]:
        """Return copies of the newest ``limit`` entries, oldest first."""
        if limit <= 0:
            return []
        entries = list(self._entries)
        return [entry.model_copy(deep=True) for entry in entries[-limit:]]
