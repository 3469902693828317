"""Identifier helpers."""

import uuid
from datetime import datetime, timezone


def generate_id(prefix: str, at: datetime | None = None) -> str:
    """Return ``{prefix}_{microseconds}_{random}``; sorts by creation time."""
    at = at or datetime.now(timezone.utc)
    return f"{prefix}_{int(at.timestamp() * 1_000_000)}_{uuid.uuid4().hex[:9]}"
