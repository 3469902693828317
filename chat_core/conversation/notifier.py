"""Unread-count hook invoked on every append."""

from typing import Protocol

from ..models import Conversation, Message


class UnreadNotifier(Protocol):
    """Decides how a new message affects per-user unread counts."""

    def message_appended(self, conversation: Conversation, message: Message) -> None:
        """Called synchronously after a message lands in the log."""
        ...


class IncrementUnread:
    """Adds one unread message for every participant except the sender."""

    def message_appended(self, conversation: Conversation, message: Message) -> None:
        for user_id in conversation.participant_ids:
            if user_id == message.sender_user_id:
                continue
            conversation.unread_count_by_user[user_id] = conversation.unread_count(user_id) + 1
