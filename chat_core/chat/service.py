"""ChatService implementation."""

import uuid
from datetime import datetime, timezone
from typing import Iterable, Protocol

from ..attachments import Composer, build_attachment
from ..briefs import BriefGenerator
from ..collaborators import IRecordsSink, ITaskSink
from ..config import InsightSettings
from ..conversation import ConversationAggregate, UnreadNotifier
from ..errors import NotFoundError
from ..event_bus import IEventBus
from ..ids import generate_id
from ..insights import InsightPipeline
from ..logging_config import get_logger, log_context
from ..models import (
    Attachment,
    BusMessage,
    Conversation,
    ConversationType,
    Insight,
    InsightCandidate,
    LinkedEntities,
    Message,
    TaskDraft,
    Topic,
)
from ..roster import IRoster
from ..serialization import draft_to_dict, insight_to_dict, message_to_dict
from ..tracker import ITracker

logger = get_logger(__name__)

ACTOR = "chat_service"


class IChatService(Protocol):
    """Entry point used by the API layer for every conversation operation."""

    async def start(self) -> None:
        """Begin accepting operations."""
        ...

    async def stop(self) -> None:
        """Close every conversation and cancel pending analysis."""
        ...

    async def create_conversation(
        self,
        type: ConversationType,
        title: str,
        participant_ids: Iterable[str],
        subtitle: str = "",
        linked: LinkedEntities | None = None,
    ) -> Conversation:
        """Open a new conversation."""
        ...

    async def append_message(
        self,
        conversation_id: str,
        sender_id: str,
        text: str,
        attachments: Iterable[Attachment] | None = None,
        reply_to_message_id: str | None = None,
        expected_version: int | None = None,
    ) -> Message:
        """Append a message; analysis runs later."""
        ...


class ChatService:
    """Routes operations to conversation aggregates and announces what happened."""

    def __init__(
        self,
        event_bus: IEventBus,
        tracker: ITracker,
        task_sink: ITaskSink,
        records_sink: IRecordsSink,
        roster: IRoster | None = None,
        notifier: UnreadNotifier | None = None,
        insight_settings: InsightSettings | None = None,
        brief_generator: BriefGenerator | None = None,
    ):
        self._event_bus = event_bus
        self._tracker = tracker
        self._task_sink = task_sink
        self._records_sink = records_sink
        self._roster = roster
        self._notifier = notifier
        self._settings = insight_settings or InsightSettings()
        self._briefs = brief_generator or BriefGenerator()

        self._aggregates: dict[str, ConversationAggregate] = {}
        self._pipelines: dict[str, InsightPipeline] = {}
        self._running = False

    async def start(self) -> None:
        logger.info("Starting ChatService")
        self._running = True

    async def stop(self) -> None:
        """Stop accepting operations and close every conversation."""
        logger.info("Stopping ChatService")
        self._running = False
        for aggregate in self._aggregates.values():
            aggregate.close()
        for pipeline in self._pipelines.values():
            await pipeline.aclose()
        self._aggregates.clear()
        self._pipelines.clear()

    # Conversations

    async def create_conversation(
        self,
        type: ConversationType,
        title: str,
        participant_ids: Iterable[str],
        subtitle: str = "",
        linked: LinkedEntities | None = None,
    ) -> Conversation:
        """Open a conversation with its own insight pipeline."""
        self._check_running()

        participants = set(participant_ids)
        conversation = Conversation(
            id=generate_id("c"),
            type=ConversationType(type),
            title=title,
            subtitle=subtitle,
            participant_ids=participants,
            linked=linked or LinkedEntities(),
            unread_count_by_user={user_id: 0 for user_id in participants},
        )
        aggregate = ConversationAggregate(
            conversation,
            roster=self._roster,
            notifier=self._notifier,
        )
        pipeline = InsightPipeline(
            conversation.id,
            sink=self._insight_sink(aggregate),
            settings=self._settings,
        )
        aggregate.attach_pipeline(pipeline)

        self._aggregates[conversation.id] = aggregate
        self._pipelines[conversation.id] = pipeline

        await self._tracker.track(
            event_type="conversation_created",
            actor=ACTOR,
            data={"title": title, "type": conversation.type.value, "participants": len(participants)},
            conversation_id=conversation.id,
        )
        return conversation

    def get(self, conversation_id: str) -> ConversationAggregate:
        aggregate = self._aggregates.get(conversation_id)
        if aggregate is None:
            raise NotFoundError("conversation", conversation_id)
        return aggregate

    def list_conversations(self) -> list[Conversation]:
        """Conversations, most recently active first."""
        conversations = [a.conversation for a in self._aggregates.values()]
        return sorted(
            conversations,
            key=lambda c: c.last_message_at or c.created_at,
            reverse=True,
        )

    async def archive_conversation(self, conversation_id: str) -> None:
        """Tear down a conversation; pending analysis for it is cancelled."""
        aggregate = self.get(conversation_id)
        aggregate.close()
        del self._aggregates[conversation_id]
        pipeline = self._pipelines.pop(conversation_id, None)
        if pipeline is not None:
            await pipeline.aclose()

        await self._tracker.track(
            event_type="conversation_archived",
            actor=ACTOR,
            data={"title": aggregate.conversation.title},
            conversation_id=conversation_id,
        )

    async def wait_for_insights(self, conversation_id: str) -> None:
        """Wait until every message scheduled so far has been analysed."""
        self.get(conversation_id)
        await self._pipelines[conversation_id].wait_idle()

    # Messages

    async def append_message(
        self,
        conversation_id: str,
        sender_id: str,
        text: str,
        attachments: Iterable[Attachment] | None = None,
        reply_to_message_id: str | None = None,
        expected_version: int | None = None,
    ) -> Message:
        """Append a message. Returns before analysis of it completes."""
        self._check_running()
        aggregate = self.get(conversation_id)

        message = aggregate.append_message(
            sender_id,
            text,
            attachments=attachments,
            reply_to_message_id=reply_to_message_id,
            expected_version=expected_version,
        )

        await self._announce(
            Topic.MESSAGES,
            "message_appended",
            conversation_id,
            {"message": message_to_dict(message)},
        )
        await self._tracker.track(
            event_type="message_appended",
            actor=sender_id,
            data={"message_id": message.id, "text": text[:100]},
            conversation_id=conversation_id,
        )
        return message

    async def toggle_reaction(
        self,
        conversation_id: str,
        message_id: str,
        emoji: str,
        user_id: str,
        expected_version: int | None = None,
    ) -> dict[str, set[str]]:
        self._check_running()
        reactions = self.get(conversation_id).toggle_reaction(
            message_id, emoji, user_id, expected_version=expected_version
        )
        await self._tracker.track(
            event_type="reaction_toggled",
            actor=user_id,
            data={"message_id": message_id, "emoji": emoji},
            conversation_id=conversation_id,
        )
        return reactions

    async def toggle_pin(
        self,
        conversation_id: str,
        message_id: str,
        expected_version: int | None = None,
    ) -> bool:
        self._check_running()
        pinned = self.get(conversation_id).toggle_pin(message_id, expected_version=expected_version)
        await self._tracker.track(
            event_type="message_pinned" if pinned else "message_unpinned",
            actor=ACTOR,
            data={"message_id": message_id},
            conversation_id=conversation_id,
        )
        return pinned

    async def mark_read(
        self,
        conversation_id: str,
        user_id: str,
        expected_version: int | None = None,
    ) -> None:
        self._check_running()
        self.get(conversation_id).mark_read(user_id, expected_version=expected_version)

    def new_composer(self) -> Composer:
        """Composer whose builders resolve names through this service's roster."""
        return Composer(self._roster)

    async def build_brief(
        self,
        conversation_id: str,
        brief_type: str,
        include_chat: bool = True,
    ) -> Attachment:
        """Generate an ai_brief attachment for the conversation (not yet sent)."""
        aggregate = self.get(conversation_id)
        content = await self._briefs.generate(
            brief_type,
            aggregate.conversation,
            aggregate.messages(),
            include_chat=include_chat,
        )
        return build_attachment(
            "ai_brief",
            {"brief_type": brief_type, "include_chat": include_chat, "content": content},
            self._roster,
        )

    # Insights and tasks

    def insights(self, conversation_id: str) -> list[Insight]:
        return self.get(conversation_id).insights

    async def act_on_insight(self, conversation_id: str, insight_id: str) -> tuple[Insight, TaskDraft]:
        """Consume an insight and return the task draft extracted from it."""
        self._check_running()
        insight, draft = self.get(conversation_id).act_on_insight(insight_id)
        await self._tracker.track(
            event_type="insight_consumed",
            actor=ACTOR,
            data={"insight_id": insight_id, "draft": draft_to_dict(draft)},
            conversation_id=conversation_id,
        )
        return insight, draft

    def draft_task_from_message(self, conversation_id: str, message_id: str) -> TaskDraft:
        return self.get(conversation_id).draft_from_message(message_id)

    async def confirm_task(
        self,
        conversation_id: str,
        user_id: str,
        draft: TaskDraft,
        source_message_id: str | None = None,
    ) -> tuple[str, Message]:
        """
        Hand a draft to the task collaborator and post the acknowledgement.

        Returns:
            The task id assigned by the collaborator and the action card message.
        """
        self._check_running()
        aggregate = self.get(conversation_id)
        source = aggregate.task_source(source_message_id)

        task_id = await self._task_sink.create_task(draft, source)
        card = aggregate.confirm_task(user_id, draft, task_id, source_message_id)

        await self._announce(
            Topic.TASKS,
            "task_created",
            conversation_id,
            {
                "task_id": task_id,
                "draft": draft_to_dict(draft),
                "source_message_id": source_message_id,
                "action_card_id": card.id,
            },
        )
        await self._tracker.track(
            event_type="task_created",
            actor=user_id,
            data={"task_id": task_id, "title": draft.title, "subtasks": len(draft.subtasks)},
            conversation_id=conversation_id,
        )
        return task_id, card

    # Records

    async def save_message_to_records(self, conversation_id: str, message_id: str) -> str:
        aggregate = self.get(conversation_id)
        message = aggregate.get_message(message_id)
        record_id = await self._records_sink.save_message(aggregate.conversation, message)
        await self._announce(
            Topic.RECORDS,
            "record_saved",
            conversation_id,
            {"record_id": record_id, "message_ids": [message_id]},
        )
        return record_id

    async def save_thread_to_records(self, conversation_id: str) -> str:
        aggregate = self.get(conversation_id)
        messages = aggregate.messages()
        record_id = await self._records_sink.save_transcript(aggregate.conversation, messages)
        await self._announce(
            Topic.RECORDS,
            "record_saved",
            conversation_id,
            {"record_id": record_id, "message_ids": [m.id for m in messages]},
        )
        return record_id

    # Internals

    def _check_running(self) -> None:
        if not self._running:
            raise RuntimeError("ChatService not started")

    def _insight_sink(self, aggregate: ConversationAggregate):
        """Callback the pipeline uses to deliver analysis results."""

        async def deliver(message: Message, candidates: list[InsightCandidate]) -> None:
            if aggregate.closed:
                return
            for insight in aggregate.record_insights(message, candidates):
                logger.info(
                    f"Insight {insight.id} ({insight.type.value}) from {message.id}",
                    extra=log_context(aggregate.id),
                )
                await self._announce(
                    Topic.INSIGHTS,
                    "insight_created",
                    aggregate.id,
                    {"insight": insight_to_dict(insight)},
                )
                await self._tracker.track(
                    event_type="insight_created",
                    actor="insight_pipeline",
                    data={"insight_id": insight.id, "type": insight.type.value},
                    conversation_id=aggregate.id,
                )

        return deliver

    async def _announce(self, topic: Topic, event: str, conversation_id: str, data: dict) -> None:
        await self._event_bus.publish(
            BusMessage(
                id=str(uuid.uuid4()),
                topic=topic,
                payload={"event": event, "conversation_id": conversation_id, **data},
                source=ACTOR,
                timestamp=datetime.now(timezone.utc),
            )
        )
