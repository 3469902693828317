"""MessageLog implementation."""

from datetime import datetime, timezone

from ..models import Message


def format_message_line(message: Message) -> str:
    """One transcript line: time, sender, text, then attachment titles."""
    stamp = message.created_at.astimezone(timezone.utc).isoformat()
    parts = [f"[{stamp}] {message.sender_name}: {message.text}"]
    for attachment in message.attachments:
        parts.append(f"  [{attachment.type.value}] {attachment.title}")
    return "\n".join(parts)


class MessageLog:
    """Append-only, ordered sequence of Messages for one conversation."""

    def __init__(self):
        self._messages: list[Message] = []
        self._index: dict[str, Message] = {}

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, message: Message) -> None:
        """Add a message to the end of the log."""
        if message.id in self._index:
            raise ValueError(f"Duplicate message id: {message.id}")
        self._messages.append(message)
        self._index[message.id] = message

    def get(self, message_id: str) -> Message | None:
        return self._index.get(message_id)

    def get_all(self) -> list[Message]:
        """Get all messages in append order."""
        return self._messages.copy()

    def get_after(self, timestamp: datetime | None) -> list[Message]:
        """Get messages created strictly after timestamp (all if None)."""
        if not timestamp:
            return self._messages.copy()

        return [msg for msg in self._messages if msg.created_at > timestamp]

    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def pinned(self) -> list[Message]:
        return [msg for msg in self._messages if msg.pinned]

    def transcript(self) -> str:
        return "\n".join(format_message_line(msg) for msg in self._messages)
