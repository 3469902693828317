"""Chat service module."""

from .service import ChatService, IChatService

__all__ = ["ChatService", "IChatService"]
