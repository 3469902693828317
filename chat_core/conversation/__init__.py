"""Conversation module."""

from .aggregate import ConversationAggregate, extract_mentions
from .log import MessageLog, format_message_line
from .notifier import IncrementUnread, UnreadNotifier

__all__ = [
    "ConversationAggregate",
    "extract_mentions",
    "MessageLog",
    "format_message_line",
    "IncrementUnread",
    "UnreadNotifier",
]
