"""Conversation-related data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ConversationType(str, Enum):
    """Kinds of conversation."""

    DM = "dm"
    CHANNEL = "channel"
    PROJECT = "project"
    SYSTEM = "system"


@dataclass
class LinkedEntities:
    """Optional references to records held by other systems."""

    project_id: str | None = None
    client_id: str | None = None
    task_id: str | None = None
    record_id: str | None = None


@dataclass
class Conversation:
    """A named channel of messages among a fixed participant set."""

    id: str
    type: ConversationType
    title: str
    subtitle: str = ""
    participant_ids: set[str] = field(default_factory=set)
    linked: LinkedEntities = field(default_factory=LinkedEntities)
    last_message_at: datetime | None = None
    last_message_preview: str = ""
    unread_count_by_user: dict[str, int] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 1

    def unread_count(self, user_id: str) -> int:
        return self.unread_count_by_user.get(user_id, 0)


@dataclass
class ConversationPreferences:
    """Per-user view state for one conversation."""

    muted: bool = False
    pinned: bool = False
    last_read_at: datetime | None = None
