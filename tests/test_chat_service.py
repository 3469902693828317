"""Tests for ChatService."""

import asyncio

import pytest

from chat_core.chat import ChatService
from chat_core.config import InsightSettings
from chat_core.errors import ConversationClosedError, NotFoundError, ValidationError
from chat_core.models import (
    AttachmentType,
    ConversationType,
    InsightType,
    LinkedEntities,
    MessageKind,
    Topic,
)


async def open_channel(chat_service, title="Campaign Chat"):
    return await chat_service.create_conversation(
        ConversationType.CHANNEL,
        title,
        ["u_alice", "u_bob", "u_mike"],
        linked=LinkedEntities(project_id="p1"),
    )


class TestChatServiceLifecycle:
    """Tests for start/stop."""

    async def test_operations_require_start(self, event_bus, tracker, storage):
        """Test operations before start() raise."""
        cs = ChatService(event_bus, tracker, task_sink=storage, records_sink=storage)
        with pytest.raises(RuntimeError, match="not started"):
            await cs.create_conversation(ConversationType.DM, "Alice", ["u_alice"])

    async def test_stop_closes_conversations(self, chat_service):
        """Test stop() closes and forgets every conversation."""
        conv = await open_channel(chat_service)
        aggregate = chat_service.get(conv.id)

        await chat_service.stop()

        assert aggregate.closed
        with pytest.raises(NotFoundError):
            chat_service.get(conv.id)

    async def test_stop_awaits_insight_workers(self, chat_service):
        """Test stop() waits for cancelled analysis workers to finish."""
        conv = await open_channel(chat_service)
        await chat_service.append_message(conv.id, "u_alice", "Please review")
        worker = chat_service._pipelines[conv.id]._worker

        await chat_service.stop()

        assert worker.done()

    async def test_conversations_get_own_generators(self, chat_service):
        """Test no random generator is shared between conversations."""
        first = await open_channel(chat_service, "First")
        second = await open_channel(chat_service, "Second")

        assert chat_service._pipelines[first.id]._rng is not chat_service._pipelines[second.id]._rng


class TestConversations:
    """Tests for conversation management."""

    async def test_create_conversation(self, chat_service, storage):
        """Test a new conversation starts with zero unread for every participant."""
        conv = await open_channel(chat_service)

        assert conv.type == ConversationType.CHANNEL
        assert conv.unread_count_by_user == {"u_alice": 0, "u_bob": 0, "u_mike": 0}

        events = await storage.get_trace_events(event_types=["conversation_created"])
        assert len(events) == 1
        assert events[0].conversation_id == conv.id

    async def test_list_most_recent_first(self, chat_service):
        """Test conversations with newer messages sort first."""
        older = await open_channel(chat_service, "Older")
        newer = await open_channel(chat_service, "Newer")
        await chat_service.append_message(older.id, "u_alice", "bump")

        assert [c.id for c in chat_service.list_conversations()] == [older.id, newer.id]

    async def test_get_unknown(self, chat_service):
        """Test unknown conversation ids raise NotFoundError."""
        with pytest.raises(NotFoundError):
            chat_service.get("c_missing")

    async def test_archive(self, chat_service, storage):
        """Test archiving removes the conversation and cancels analysis."""
        conv = await open_channel(chat_service)
        aggregate = chat_service.get(conv.id)

        await chat_service.archive_conversation(conv.id)

        assert aggregate.closed
        with pytest.raises(NotFoundError):
            chat_service.get(conv.id)
        events = await storage.get_trace_events(event_types=["conversation_archived"])
        assert len(events) == 1

    async def test_archive_awaits_insight_worker(self, chat_service):
        """Test archiving waits for the conversation's analysis worker to finish."""
        conv = await open_channel(chat_service)
        await chat_service.append_message(conv.id, "u_alice", "Please review")
        worker = chat_service._pipelines[conv.id]._worker

        await chat_service.archive_conversation(conv.id)

        assert worker.done()


class TestMessaging:
    """Tests for sending and message state."""

    async def test_append_publishes_and_tracks(self, chat_service, event_bus, storage):
        """Test appends go to the messages topic and the trace log."""
        received = []

        async def on_message(bus_message):
            received.append(bus_message)

        event_bus.subscribe(Topic.MESSAGES, on_message)
        conv = await open_channel(chat_service)

        msg = await chat_service.append_message(conv.id, "u_alice", "Hello team")

        assert len(received) == 1
        assert received[0].payload["event"] == "message_appended"
        assert received[0].payload["message"]["id"] == msg.id

        events = await storage.get_trace_events(
            event_types=["message_appended"], conversation_id=conv.id
        )
        assert len(events) == 1
        assert events[0].actor == "u_alice"

    async def test_append_returns_before_insight(self, chat_service):
        """Test insights are not visible when append returns."""
        conv = await open_channel(chat_service)
        await chat_service.append_message(conv.id, "u_alice", "Please send the memo by tomorrow night.")

        assert chat_service.insights(conv.id) == []

        await chat_service.wait_for_insights(conv.id)
        assert len(chat_service.insights(conv.id)) == 1

    async def test_send_with_composer(self, chat_service):
        """Test composer attachments are carried on the message."""
        conv = await open_channel(chat_service)
        composer = chat_service.new_composer()
        composer.attach("task", {"title": "Review", "assignee": "u_bob"})
        composer.attach("poll", {"question": "Lunch?", "options": ["A", "B"]})

        msg = await chat_service.append_message(conv.id, "u_alice", "", attachments=composer.take())

        assert [a.type for a in msg.attachments] == [AttachmentType.TASK, AttachmentType.POLL]
        assert msg.attachments[0].payload.assignee_name == "Bob"
        assert chat_service.get(conv.id).conversation.last_message_preview == "[task] Review"

    async def test_reaction_pin_and_read(self, chat_service, storage):
        """Test reaction, pin and read operations pass through."""
        conv = await open_channel(chat_service)
        msg = await chat_service.append_message(conv.id, "u_alice", "ship it")

        reactions = await chat_service.toggle_reaction(conv.id, msg.id, "👍", "u_bob")
        assert reactions == {"👍": {"u_bob"}}

        assert await chat_service.toggle_pin(conv.id, msg.id) is True

        await chat_service.mark_read(conv.id, "u_bob")
        assert chat_service.get(conv.id).conversation.unread_count("u_bob") == 0

        pinned = await storage.get_trace_events(event_types=["message_pinned"])
        assert len(pinned) == 1

    async def test_send_to_archived(self, chat_service):
        """Test an archived conversation is gone for senders."""
        conv = await open_channel(chat_service)
        await chat_service.archive_conversation(conv.id)
        with pytest.raises(NotFoundError):
            await chat_service.append_message(conv.id, "u_alice", "hello?")


class TestInsights:
    """Tests for deferred insights through the service."""

    async def test_scenario_please_send(self, chat_service, event_bus, storage):
        """Test a trigger message produces one task recommendation insight."""
        received = []

        async def on_insight(bus_message):
            received.append(bus_message)

        event_bus.subscribe(Topic.INSIGHTS, on_insight)
        conv = await open_channel(chat_service)

        msg = await chat_service.append_message(
            conv.id, "u_alice", "Please send the memo by tomorrow night."
        )
        await chat_service.wait_for_insights(conv.id)

        (insight,) = chat_service.insights(conv.id)
        assert insight.type == InsightType.TASK_RECOMMENDATION
        assert insight.source_message_id == msg.id
        assert insight.description.startswith(
            'Based on your message: "Please send the memo by tomorrow night...."'
        )
        assert received[0].payload["insight"]["id"] == insight.id

        tracked = await storage.get_trace_events(event_types=["insight_created"])
        assert len(tracked) == 1

    async def test_insights_fifo_across_messages(self, chat_service):
        """Test insights appear in message order."""
        conv = await open_channel(chat_service)
        sent = []
        for i in range(4):
            sent.append(await chat_service.append_message(conv.id, "u_alice", f"Please do {i}"))

        await chat_service.wait_for_insights(conv.id)

        assert [i.source_message_id for i in chat_service.insights(conv.id)] == [m.id for m in sent]

    async def test_no_insight_after_archive(self, event_bus, tracker, storage):
        """Test archiving before the delay elapses leaves no insight behind."""
        cs = ChatService(
            event_bus,
            tracker,
            task_sink=storage,
            records_sink=storage,
            insight_settings=InsightSettings(delay_seconds=0.05, general_probability=0),
        )
        await cs.start()
        conv = await cs.create_conversation(ConversationType.DM, "Bob", ["u_alice", "u_bob"])
        aggregate = cs.get(conv.id)

        await cs.append_message(conv.id, "u_alice", "Please review")
        await cs.archive_conversation(conv.id)
        await asyncio.sleep(0.15)

        assert aggregate.insights == []
        assert await storage.get_trace_events(event_types=["insight_created"]) == []
        await cs.stop()

    async def test_action_cards_not_analysed(self, chat_service):
        """Test the action card for a task does not trigger a new insight."""
        conv = await open_channel(chat_service)
        msg = await chat_service.append_message(conv.id, "u_alice", "Please draft the plan")
        await chat_service.wait_for_insights(conv.id)

        (insight,) = chat_service.insights(conv.id)
        _, draft = await chat_service.act_on_insight(conv.id, insight.id)
        await chat_service.confirm_task(conv.id, "u_alice", draft, source_message_id=msg.id)
        await chat_service.wait_for_insights(conv.id)

        assert chat_service.insights(conv.id) == []


class TestTasks:
    """Tests for the insight to task flow."""

    async def test_insight_to_task(self, chat_service, storage, event_bus):
        """Test acting on an insight and confirming creates a task and an action card."""
        tasks_seen = []

        async def on_task(bus_message):
            tasks_seen.append(bus_message)

        event_bus.subscribe(Topic.TASKS, on_task)
        conv = await open_channel(chat_service)
        source = await chat_service.append_message(
            conv.id,
            "u_alice",
            "Can you pull data for CA-45 and CA-92 and send a memo to Mike?",
        )
        await chat_service.wait_for_insights(conv.id)

        (insight,) = chat_service.insights(conv.id)
        consumed, draft = await chat_service.act_on_insight(conv.id, insight.id)
        assert consumed.id == insight.id
        assert chat_service.insights(conv.id) == []
        assert len(draft.subtasks) == 4

        task_id, card = await chat_service.confirm_task(
            conv.id, "u_alice", draft, source_message_id=source.id
        )

        assert card.kind == MessageKind.ACTION_CARD
        assert card.text == f'Task created: "{draft.title}"\n4 subtasks added.'
        assert card.reply_to_message_id == source.id
        assert card.linked.task_id == task_id
        assert card.linked.project_id == "p1"

        stored = await storage.get_task(task_id)
        assert stored.draft == draft
        assert stored.source.source_message_id == source.id
        assert stored.source.source_sender_name == "Alice"

        assert tasks_seen[0].payload["task_id"] == task_id

    async def test_draft_from_message(self, chat_service):
        """Test drafting straight from a message."""
        conv = await open_channel(chat_service)
        msg = await chat_service.append_message(conv.id, "u_alice", "- Call Mike\n- Book room\nFinish budget")

        draft = chat_service.draft_task_from_message(conv.id, msg.id)

        assert [s.title for s in draft.subtasks] == ["Call Mike", "Book room"]

    async def test_task_sink_failure_propagates(self, chat_service, storage, monkeypatch):
        """Test a failing task sink surfaces and no action card is posted."""
        conv = await open_channel(chat_service)
        msg = await chat_service.append_message(conv.id, "u_alice", "Please review")
        draft = chat_service.draft_task_from_message(conv.id, msg.id)

        async def broken(draft, source):
            raise RuntimeError("task board unavailable")

        monkeypatch.setattr(storage, "create_task", broken)

        with pytest.raises(RuntimeError, match="unavailable"):
            await chat_service.confirm_task(conv.id, "u_alice", draft, source_message_id=msg.id)
        assert len(chat_service.get(conv.id).messages()) == 1


class TestRecords:
    """Tests for saving to records."""

    async def test_save_message(self, chat_service, storage):
        """Test a single message is archived."""
        conv = await open_channel(chat_service)
        msg = await chat_service.append_message(conv.id, "u_alice", "Decision: go")

        record_id = await chat_service.save_message_to_records(conv.id, msg.id)

        record = await storage.get_record(record_id)
        assert record.message_ids == [msg.id]
        assert "Alice: Decision: go" in record.content

    async def test_save_thread(self, chat_service, storage):
        """Test the whole conversation is archived in order."""
        conv = await open_channel(chat_service)
        first = await chat_service.append_message(conv.id, "u_alice", "one")
        second = await chat_service.append_message(conv.id, "u_bob", "two")

        record_id = await chat_service.save_thread_to_records(conv.id)

        record = await storage.get_record(record_id)
        assert record.message_ids == [first.id, second.id]
        assert record.title == "Transcript: Campaign Chat"

    async def test_save_unknown_message(self, chat_service):
        """Test archiving a missing message raises."""
        conv = await open_channel(chat_service)
        with pytest.raises(NotFoundError):
            await chat_service.save_message_to_records(conv.id, "m_missing")


class TestBriefs:
    """Tests for ai_brief attachments built by the service."""

    async def test_build_brief(self, chat_service, mock_llm):
        """Test the brief attachment carries generated content."""
        conv = await open_channel(chat_service)
        await chat_service.append_message(conv.id, "u_alice", "Budget is over by 10%")

        att = await chat_service.build_brief(conv.id, "project_risk")

        assert att.type == AttachmentType.AI_BRIEF
        assert att.title == "Project Risk Analysis"
        assert att.payload.content == "**Generated brief**"
        mock_llm.complete.assert_awaited_once()

    async def test_build_brief_unknown_type(self, chat_service):
        """Test unknown brief types are rejected."""
        conv = await open_channel(chat_service)
        with pytest.raises(ValidationError):
            await chat_service.build_brief(conv.id, "horoscope")

    async def test_closed_conversation_record_insights(self, chat_service):
        """Test insights cannot be recorded on a closed aggregate."""
        conv = await open_channel(chat_service)
        msg = await chat_service.append_message(conv.id, "u_alice", "hi")
        aggregate = chat_service.get(conv.id)
        aggregate.close()
        with pytest.raises(ConversationClosedError):
            aggregate.record_insights(msg, [])
