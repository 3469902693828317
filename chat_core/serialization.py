"""Plain-dict views of domain objects for the bus, trace log and API."""

from dataclasses import asdict

from .models import Conversation, Insight, Message, TaskDraft


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def conversation_to_dict(conversation: Conversation) -> dict:
    return {
        "id": conversation.id,
        "type": conversation.type.value,
        "title": conversation.title,
        "subtitle": conversation.subtitle,
        "participant_ids": sorted(conversation.participant_ids),
        "linked": asdict(conversation.linked),
        "last_message_at": _iso(conversation.last_message_at),
        "last_message_preview": conversation.last_message_preview,
        "unread_count_by_user": dict(conversation.unread_count_by_user),
        "created_at": _iso(conversation.created_at),
        "updated_at": _iso(conversation.updated_at),
        "version": conversation.version,
    }


def message_to_dict(message: Message) -> dict:
    return {
        "id": message.id,
        "conversation_id": message.conversation_id,
        "sender_user_id": message.sender_user_id,
        "sender_name": message.sender_name,
        "kind": message.kind.value,
        "text": message.text,
        "attachments": [attachment.to_dict() for attachment in message.attachments],
        "reactions": {emoji: sorted(users) for emoji, users in message.reactions.items()},
        "pinned": message.pinned,
        "reply_to_message_id": message.reply_to_message_id,
        "linked": asdict(message.linked),
        "mentions": list(message.mentions),
        "created_at": _iso(message.created_at),
        "edited_at": _iso(message.edited_at),
        "version": message.version,
    }


def insight_to_dict(insight: Insight) -> dict:
    return {
        "id": insight.id,
        "type": insight.type.value,
        "title": insight.title,
        "description": insight.description,
        "source_message_id": insight.source_message_id,
        "captured_text": insight.captured_text,
        "created_at": _iso(insight.created_at),
    }


def draft_to_dict(draft: TaskDraft) -> dict:
    return {
        "title": draft.title,
        "description": draft.description,
        "subtasks": [{"id": s.id, "title": s.title} for s in draft.subtasks],
    }
