"""ConversationAggregate implementation.

All mutations are synchronous and complete before returning, so two of them
never interleave on the event loop. The only deferred work is analysis,
which is handed to the attached insight pipeline.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Iterable

from ..errors import (
    ConversationClosedError,
    EmptyMessageError,
    NotFoundError,
    StaleVersionError,
    ValidationError,
)
from ..extraction import extract_task
from ..ids import generate_id
from ..insights import IInsightPipeline
from ..logging_config import get_logger, log_context
from ..models import (
    Attachment,
    Conversation,
    ConversationPreferences,
    Insight,
    InsightCandidate,
    LinkedEntities,
    Message,
    MessageKind,
    TaskDraft,
    TaskSource,
)
from ..roster import IRoster
from .log import MessageLog
from .notifier import IncrementUnread, UnreadNotifier

logger = get_logger(__name__)

PREVIEW_LENGTH = 100

_MENTION = re.compile(r"@(\w+)")


def extract_mentions(text: str) -> list[str]:
    """Return ``@name`` tokens in order of appearance."""
    return _MENTION.findall(text)


class ConversationAggregate:
    """Owns one conversation's message log, insights and per-user preferences."""

    def __init__(
        self,
        conversation: Conversation,
        roster: IRoster | None = None,
        notifier: UnreadNotifier | None = None,
        pipeline: IInsightPipeline | None = None,
    ):
        self._conversation = conversation
        self._roster = roster
        self._notifier = notifier or IncrementUnread()
        self._pipeline = pipeline
        self._log = MessageLog()
        self._insights: list[Insight] = []
        self._preferences: dict[str, ConversationPreferences] = {}
        self._attachment_ids: set[str] = set()
        self._closed = False

    # Read access

    @property
    def conversation(self) -> Conversation:
        return self._conversation

    @property
    def id(self) -> str:
        return self._conversation.id

    @property
    def version(self) -> int:
        return self._conversation.version

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def insights(self) -> list[Insight]:
        """Active insights in the order they were produced."""
        return self._insights.copy()

    def messages(self) -> list[Message]:
        return self._log.get_all()

    def pinned_messages(self) -> list[Message]:
        return self._log.pinned()

    def messages_after(self, timestamp: datetime | None) -> list[Message]:
        return self._log.get_after(timestamp)

    def transcript(self) -> str:
        """Plain-text rendering of the whole log, one line per message."""
        return self._log.transcript()

    def get_message(self, message_id: str) -> Message:
        message = self._log.get(message_id)
        if message is None:
            raise NotFoundError("message", message_id)
        return message

    def get_insight(self, insight_id: str) -> Insight:
        for insight in self._insights:
            if insight.id == insight_id:
                return insight
        raise NotFoundError("insight", insight_id)

    def preferences(self, user_id: str) -> ConversationPreferences:
        return self._preferences.setdefault(user_id, ConversationPreferences())

    def attach_pipeline(self, pipeline: IInsightPipeline) -> None:
        self._pipeline = pipeline

    # Messages

    def append_message(
        self,
        sender_id: str,
        text: str,
        attachments: Iterable[Attachment] | None = None,
        kind: MessageKind = MessageKind.TEXT,
        reply_to_message_id: str | None = None,
        linked: LinkedEntities | None = None,
        expected_version: int | None = None,
    ) -> Message:
        """
        Append a message and schedule its analysis.

        Returns as soon as the message is in the log; insights for it appear
        later through the pipeline.

        Raises:
            EmptyMessageError: no text and no attachments.
            NotFoundError: reply_to_message_id is not in this conversation.
            ValidationError: an attachment already belongs to another message.
            StaleVersionError: expected_version does not match.
            ConversationClosedError: the conversation was archived.
        """
        self._check_writable(expected_version)

        attachments = list(attachments or [])
        if not text.strip() and not attachments:
            raise EmptyMessageError()

        if reply_to_message_id is not None:
            self.get_message(reply_to_message_id)

        attachment_ids = [attachment.id for attachment in attachments]
        if len(set(attachment_ids)) != len(attachment_ids) or self._attachment_ids.intersection(
            attachment_ids
        ):
            raise ValidationError("attachments", "Attachment is already part of a message")

        created_at = self._next_timestamp()
        message = Message(
            id=generate_id("m", created_at),
            conversation_id=self.id,
            sender_user_id=sender_id,
            sender_name=self._display_name(sender_id),
            text=text,
            created_at=created_at,
            kind=kind,
            attachments=attachments,
            reply_to_message_id=reply_to_message_id,
            linked=linked or LinkedEntities(),
            mentions=extract_mentions(text),
        )

        self._log.append(message)
        self._attachment_ids.update(attachment_ids)

        conversation = self._conversation
        conversation.last_message_at = created_at
        conversation.last_message_preview = self._preview(text, attachments)
        self._touch(created_at)

        self._notifier.message_appended(conversation, message)

        logger.info(
            f"Message {message.id} appended by {sender_id}",
            extra=log_context(self.id, kind=kind.value, attachments=len(attachments)),
        )

        if kind == MessageKind.TEXT and self._pipeline is not None:
            try:
                self._pipeline.schedule(message)
            except Exception as e:
                logger.error(
                    f"Failed to schedule analysis for {message.id}: {e}",
                    extra=log_context(self.id),
                )

        return message

    def toggle_reaction(
        self,
        message_id: str,
        emoji: str,
        user_id: str,
        expected_version: int | None = None,
    ) -> dict[str, set[str]]:
        """Add the user's reaction, or remove it if present. Returns the reactions."""
        self._check_writable(expected_version)
        message = self.get_message(message_id)

        voters = message.reactions.get(emoji)
        if voters is not None and user_id in voters:
            voters.discard(user_id)
            if not voters:
                del message.reactions[emoji]
        else:
            message.reactions.setdefault(emoji, set()).add(user_id)

        message.version += 1
        self._touch()
        return message.reactions

    def toggle_pin(self, message_id: str, expected_version: int | None = None) -> bool:
        """Flip a message's pinned flag and return the new value."""
        self._check_writable(expected_version)
        message = self.get_message(message_id)
        message.pinned = not message.pinned
        message.version += 1
        self._touch()
        return message.pinned

    # Per-user state

    def mark_read(self, user_id: str, expected_version: int | None = None) -> None:
        self._check_writable(expected_version)
        self._require_participant(user_id)
        now = datetime.now(timezone.utc)
        self._conversation.unread_count_by_user[user_id] = 0
        self.preferences(user_id).last_read_at = now
        self._touch(now)

    def toggle_mute(self, user_id: str) -> bool:
        self._check_writable(None)
        self._require_participant(user_id)
        prefs = self.preferences(user_id)
        prefs.muted = not prefs.muted
        self._touch()
        return prefs.muted

    def toggle_conversation_pin(self, user_id: str) -> bool:
        self._check_writable(None)
        self._require_participant(user_id)
        prefs = self.preferences(user_id)
        prefs.pinned = not prefs.pinned
        self._touch()
        return prefs.pinned

    # Insights

    def record_insights(self, message: Message, candidates: list[InsightCandidate]) -> list[Insight]:
        """Bind analysis output to this conversation, preserving candidate order."""
        if self._closed:
            raise ConversationClosedError(self.id)

        created = []
        for candidate in candidates:
            insight = Insight(
                id=generate_id("ins"),
                type=candidate.type,
                title=candidate.title,
                description=candidate.description,
                source_message_id=message.id,
                captured_text=candidate.captured_text,
            )
            self._insights.append(insight)
            created.append(insight)

        if created:
            self._touch()
        return created

    def take_insight(self, insight_id: str) -> Insight:
        """Remove an insight from the active list. The message log is untouched."""
        self._check_writable(None)
        insight = self.get_insight(insight_id)
        self._insights.remove(insight)
        self._touch()
        return insight

    # Tasks

    def act_on_insight(self, insight_id: str) -> tuple[Insight, TaskDraft]:
        """Consume an insight and extract a task draft from its captured text."""
        insight = self.take_insight(insight_id)
        source_text = insight.captured_text or insight.description
        return insight, extract_task(source_text, self._conversation.title)

    def draft_from_message(self, message_id: str) -> TaskDraft:
        message = self.get_message(message_id)
        return extract_task(message.text, self._conversation.title)

    def task_source(self, message_id: str | None) -> TaskSource:
        """Provenance handed to the task collaborator."""
        message = self.get_message(message_id) if message_id else None
        return TaskSource(
            source_message_id=message_id,
            source_conversation_id=self.id,
            source_preview_text=message.text[:PREVIEW_LENGTH] if message else "",
            source_sender_name=message.sender_name if message else "",
        )

    def confirm_task(
        self,
        sender_id: str,
        draft: TaskDraft,
        task_id: str,
        source_message_id: str | None = None,
    ) -> Message:
        """Append the action card acknowledging a created task."""
        return self.append_message(
            sender_id,
            f'Task created: "{draft.title}"\n{len(draft.subtasks)} subtasks added.',
            kind=MessageKind.ACTION_CARD,
            reply_to_message_id=source_message_id,
            linked=LinkedEntities(
                project_id=self._conversation.linked.project_id,
                client_id=self._conversation.linked.client_id,
                task_id=task_id,
            ),
        )

    # Lifecycle

    def close(self) -> None:
        """Archive the conversation and cancel pending analysis."""
        if self._closed:
            return
        self._closed = True
        if self._pipeline is not None:
            self._pipeline.close()
        logger.info("Conversation closed", extra=log_context(self.id))

    # Internals

    def _check_writable(self, expected_version: int | None) -> None:
        if self._closed:
            raise ConversationClosedError(self.id)
        if expected_version is not None and expected_version != self.version:
            raise StaleVersionError(expected_version, self.version)

    def _require_participant(self, user_id: str) -> None:
        if user_id not in self._conversation.participant_ids:
            raise NotFoundError("participant", user_id)

    def _display_name(self, user_id: str) -> str:
        name = self._roster.display_name(user_id) if self._roster else None
        return name or user_id

    def _next_timestamp(self) -> datetime:
        """Wall-clock time, nudged forward so log timestamps strictly increase."""
        now = datetime.now(timezone.utc)
        last = self._log.last()
        if last is not None and now <= last.created_at:
            now = last.created_at + timedelta(microseconds=1)
        return now

    @staticmethod
    def _preview(text: str, attachments: list[Attachment]) -> str:
        if text:
            preview = text
        elif attachments:
            preview = f"[{attachments[0].type.value}] {attachments[0].title}"
        else:
            preview = ""
        return preview[:PREVIEW_LENGTH]

    def _touch(self, at: datetime | None = None) -> None:
        self._conversation.updated_at = at or datetime.now(timezone.utc)
        self._conversation.version += 1
