"""Error taxonomy for the chat core."""


class ChatError(Exception):
    """Base class for all chat core errors."""


class ValidationError(ChatError):
    """A builder or send precondition rejected its input."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"Invalid or missing field: {field}")


class EmptyMessageError(ValidationError):
    """A message was sent with neither text nor attachments."""

    def __init__(self):
        super().__init__("text", "Message must have text or at least one attachment")


class NotFoundError(ChatError):
    """Operation referenced a conversation, message or insight that does not exist."""

    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind} not found: {item_id}")


class StaleVersionError(ChatError):
    """Caller's expected version no longer matches the aggregate."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Stale version: expected {expected}, current is {actual}")


class ConversationClosedError(ChatError):
    """Mutation attempted on an archived conversation."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(f"Conversation is closed: {conversation_id}")
