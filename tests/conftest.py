"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from chat_core.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def event_bus(storage):
    """Create EventBus with storage."""
    from chat_core.event_bus import EventBus

    return EventBus(storage)


@pytest.fixture
def tracker(storage, event_bus):
    """Create Tracker with storage and event bus."""
    from chat_core.tracker import Tracker

    return Tracker(event_bus=event_bus, storage=storage)


@pytest.fixture
def mock_llm():
    """Create mock LLM provider."""
    llm = Mock()
    llm.complete = AsyncMock(return_value="**Generated brief**")
    return llm


@pytest.fixture
def roster():
    """Roster with a small team."""
    from chat_core.models import User
    from chat_core.roster import Roster

    return Roster(
        [
            User(id="u_alice", team_id="team1", name="Alice", role="PM"),
            User(id="u_bob", team_id="team1", name="Bob", role="Analyst"),
            User(id="u_mike", team_id="team1", name="Mike", role="Director"),
        ]
    )


@pytest.fixture
def insight_settings():
    """Short delay and no general insights, so results are deterministic."""
    from chat_core.config import InsightSettings

    return InsightSettings(delay_seconds=0.01, general_probability=0.0, random_seed=7)


@pytest.fixture
def conversation():
    """A channel conversation with three participants."""
    from chat_core.models import Conversation, ConversationType

    return Conversation(
        id="c_test",
        type=ConversationType.CHANNEL,
        title="Campaign Chat",
        participant_ids={"u_alice", "u_bob", "u_mike"},
        unread_count_by_user={"u_alice": 0, "u_bob": 0, "u_mike": 0},
    )


@pytest.fixture
def aggregate(conversation, roster):
    """ConversationAggregate without an insight pipeline."""
    from chat_core.conversation import ConversationAggregate

    return ConversationAggregate(conversation, roster=roster)


@pytest_asyncio.fixture
async def chat_service(event_bus, tracker, storage, roster, insight_settings, mock_llm):
    """Create a started ChatService backed by in-memory storage."""
    from chat_core.briefs import BriefGenerator
    from chat_core.chat import ChatService

    await tracker.start()
    cs = ChatService(
        event_bus=event_bus,
        tracker=tracker,
        task_sink=storage,
        records_sink=storage,
        roster=roster,
        insight_settings=insight_settings,
        brief_generator=BriefGenerator(mock_llm),
    )
    await cs.start()
    yield cs
    await cs.stop()
    await tracker.stop()
