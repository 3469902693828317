"""Tracing and observability data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TraceEvent:
    """A single observability event about chat activity."""

    id: str
    event_type: str  # e.g. "message_appended", "insight_created"
    actor: str  # component or user that caused it
    data: dict  # self-contained summary for display
    timestamp: datetime
    conversation_id: str | None = None
