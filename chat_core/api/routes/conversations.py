"""Conversation, message, insight and task API routes."""

from typing import Any

from pydantic import BaseModel, Field
from fastapi import APIRouter

from ...app import Application
from ...models import ConversationType, LinkedEntities, Subtask, TaskDraft
from ...serialization import (
    conversation_to_dict,
    draft_to_dict,
    insight_to_dict,
    message_to_dict,
)


class CreateConversationRequest(BaseModel):
    """Request model for opening a conversation."""

    type: ConversationType
    title: str
    participant_ids: list[str]
    subtitle: str = ""
    project_id: str | None = None
    client_id: str | None = None


class AttachmentRequest(BaseModel):
    """Attachment form: variant plus raw field values."""

    type: str
    fields: dict[str, Any] = Field(default_factory=dict)


class SendMessageRequest(BaseModel):
    """Request model for sending a message."""

    sender_id: str
    text: str = ""
    attachments: list[AttachmentRequest] = Field(default_factory=list)
    reply_to_message_id: str | None = None
    expected_version: int | None = None


class ReactionRequest(BaseModel):
    emoji: str
    user_id: str


class ReadRequest(BaseModel):
    user_id: str


class BriefRequest(BaseModel):
    brief_type: str
    include_chat: bool = True


class SubtaskModel(BaseModel):
    id: str
    title: str


class ConfirmTaskRequest(BaseModel):
    """A (possibly user-edited) draft to hand to the task system."""

    user_id: str
    title: str
    description: str
    subtasks: list[SubtaskModel] = Field(default_factory=list)
    source_message_id: str | None = None


class TaskCreatedResponse(BaseModel):
    task_id: str
    message: dict[str, Any]


class RecordResponse(BaseModel):
    record_id: str


def create_conversations_router(app: Application) -> APIRouter:
    """Create conversations router."""
    router = APIRouter(prefix="/api/conversations", tags=["conversations"])

    @router.post("")
    async def create_conversation(request: CreateConversationRequest) -> dict:
        conversation = await app.chat_service.create_conversation(
            request.type,
            request.title,
            request.participant_ids,
            subtitle=request.subtitle,
            linked=LinkedEntities(project_id=request.project_id, client_id=request.client_id),
        )
        return conversation_to_dict(conversation)

    @router.get("")
    async def list_conversations() -> list[dict]:
        return [conversation_to_dict(c) for c in app.chat_service.list_conversations()]

    @router.get("/{conversation_id}")
    async def get_conversation(conversation_id: str) -> dict:
        return conversation_to_dict(app.chat_service.get(conversation_id).conversation)

    @router.delete("/{conversation_id}")
    async def archive_conversation(conversation_id: str) -> dict:
        await app.chat_service.archive_conversation(conversation_id)
        return {"status": "ok"}

    # Messages

    @router.get("/{conversation_id}/messages")
    async def list_messages(conversation_id: str, pinned: bool = False) -> list[dict]:
        aggregate = app.chat_service.get(conversation_id)
        messages = aggregate.pinned_messages() if pinned else aggregate.messages()
        return [message_to_dict(m) for m in messages]

    @router.post("/{conversation_id}/messages")
    async def send_message(conversation_id: str, request: SendMessageRequest) -> dict:
        """Send a message; insights for it arrive after the analysis delay."""
        composer = app.chat_service.new_composer()
        for attachment in request.attachments:
            composer.attach(attachment.type, attachment.fields)

        message = await app.chat_service.append_message(
            conversation_id,
            request.sender_id,
            request.text,
            attachments=composer.take(),
            reply_to_message_id=request.reply_to_message_id,
            expected_version=request.expected_version,
        )
        return message_to_dict(message)

    @router.post("/{conversation_id}/messages/{message_id}/reactions")
    async def toggle_reaction(conversation_id: str, message_id: str, request: ReactionRequest) -> dict:
        reactions = await app.chat_service.toggle_reaction(
            conversation_id, message_id, request.emoji, request.user_id
        )
        return {"reactions": {emoji: sorted(users) for emoji, users in reactions.items()}}

    @router.post("/{conversation_id}/messages/{message_id}/pin")
    async def toggle_pin(conversation_id: str, message_id: str) -> dict:
        pinned = await app.chat_service.toggle_pin(conversation_id, message_id)
        return {"pinned": pinned}

    @router.post("/{conversation_id}/read")
    async def mark_read(conversation_id: str, request: ReadRequest) -> dict:
        await app.chat_service.mark_read(conversation_id, request.user_id)
        return {"status": "ok"}

    @router.post("/{conversation_id}/briefs")
    async def generate_brief(conversation_id: str, request: BriefRequest) -> dict:
        """Build an ai_brief attachment for the composer (not sent)."""
        attachment = await app.chat_service.build_brief(
            conversation_id, request.brief_type, include_chat=request.include_chat
        )
        return attachment.to_dict()

    # Insights and tasks

    @router.get("/{conversation_id}/insights")
    async def list_insights(conversation_id: str) -> list[dict]:
        return [insight_to_dict(i) for i in app.chat_service.insights(conversation_id)]

    @router.post("/{conversation_id}/insights/{insight_id}/act")
    async def act_on_insight(conversation_id: str, insight_id: str) -> dict:
        insight, draft = await app.chat_service.act_on_insight(conversation_id, insight_id)
        return {
            "insight": insight_to_dict(insight),
            "draft": draft_to_dict(draft),
        }

    @router.post("/{conversation_id}/messages/{message_id}/task-draft")
    async def draft_task(conversation_id: str, message_id: str) -> dict:
        draft = app.chat_service.draft_task_from_message(conversation_id, message_id)
        return draft_to_dict(draft)

    @router.post("/{conversation_id}/tasks", response_model=TaskCreatedResponse)
    async def confirm_task(conversation_id: str, request: ConfirmTaskRequest) -> dict:
        draft = TaskDraft(
            title=request.title,
            description=request.description,
            subtasks=tuple(Subtask(id=s.id, title=s.title) for s in request.subtasks),
        )
        task_id, card = await app.chat_service.confirm_task(
            conversation_id,
            request.user_id,
            draft,
            source_message_id=request.source_message_id,
        )
        return {"task_id": task_id, "message": message_to_dict(card)}

    # Records

    @router.post("/{conversation_id}/messages/{message_id}/records", response_model=RecordResponse)
    async def save_message_to_records(conversation_id: str, message_id: str) -> dict:
        record_id = await app.chat_service.save_message_to_records(conversation_id, message_id)
        return {"record_id": record_id}

    @router.post("/{conversation_id}/records", response_model=RecordResponse)
    async def save_thread_to_records(conversation_id: str) -> dict:
        record_id = await app.chat_service.save_thread_to_records(conversation_id)
        return {"record_id": record_id}

    return router
