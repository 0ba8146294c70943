"""Pydantic schema for diagnostic event log entries."""

from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, Field


def utc_timestamp() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class EventLogEntry(BaseModel):
    """A single diagnostic event."""

    event: str = Field(..., description="Event name, e.g. 'vote_requested'")
    payload: Dict[str, Any] = Field(
        default_factory=dict, description="Event-specific details"
    )
    timestamp: str = Field(
        default_factory=utc_timestamp, description="ISO-8601 UTC timestamp"
    )
