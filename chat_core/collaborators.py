"""Interfaces of the systems the chat core hands work to."""

from typing import Protocol

from .models import Conversation, Message, TaskDraft, TaskSource


class ITaskSink(Protocol):
    """Task board that persists confirmed drafts."""

    async def create_task(self, draft: TaskDraft, source: TaskSource) -> str:
        """Persist the draft and return a durable task id."""
        ...


class IRecordsSink(Protocol):
    """Records archive."""

    async def save_message(self, conversation: Conversation, message: Message) -> str:
        """Archive a single message and return the record id."""
        ...

    async def save_transcript(self, conversation: Conversation, messages: list[Message]) -> str:
        """Archive a whole conversation and return the record id."""
        ...
