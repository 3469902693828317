"""Message-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .attachments import Attachment
from .conversation import LinkedEntities


@dataclass
class Team:
    """A team containing users."""

    id: str
    name: str


@dataclass
class User:
    """A user participating in a team."""

    id: str
    team_id: str
    name: str
    role: str = ""


class MessageKind(str, Enum):
    """How a message was produced."""

    TEXT = "text"
    ACTION_CARD = "action_card"
    SYSTEM_INSIGHT = "system_insight"


_IMMUTABLE_FIELDS = frozenset({"id", "conversation_id", "sender_user_id", "created_at"})


@dataclass
class Message:
    """A single message in a conversation log."""

    id: str
    conversation_id: str
    sender_user_id: str
    sender_name: str
    text: str
    created_at: datetime
    kind: MessageKind = MessageKind.TEXT
    attachments: list[Attachment] = field(default_factory=list)
    reactions: dict[str, set[str]] = field(default_factory=dict)
    pinned: bool = False
    reply_to_message_id: str | None = None
    linked: LinkedEntities = field(default_factory=LinkedEntities)
    mentions: list[str] = field(default_factory=list)
    edited_at: datetime | None = None
    version: int = 1

    def __setattr__(self, name, value):
        if name in _IMMUTABLE_FIELDS and name in self.__dict__:
            raise AttributeError(f"Message.{name} cannot change after creation")
        super().__setattr__(name, value)
