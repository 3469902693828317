"""Tests for BriefGenerator."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from chat_core.attachments.builders import CANNED_BRIEFS
from chat_core.briefs import BriefGenerator
from chat_core.errors import ValidationError
from chat_core.models import Conversation, ConversationType, Message


@pytest.fixture
def conv():
    return Conversation(id="c1", type=ConversationType.PROJECT, title="Acme Rollout")


def make_messages(count: int) -> list[Message]:
    return [
        Message(
            id=f"m{i}",
            conversation_id="c1",
            sender_user_id="u1",
            sender_name="Alice",
            text=f"update {i}",
            created_at=datetime.now(timezone.utc),
        )
        for i in range(count)
    ]


class TestBriefGenerator:
    """Tests for brief content generation."""

    async def test_canned_without_llm(self, conv):
        """Test canned content is used when no LLM is configured."""
        content = await BriefGenerator().generate("meeting_prep", conv, [])
        assert content == CANNED_BRIEFS["meeting_prep"]

    async def test_llm_prompt_includes_chat(self, conv, mock_llm):
        """Test the prompt names the brief, the conversation and recent messages."""
        content = await BriefGenerator(mock_llm).generate("weekly_summary", conv, make_messages(3))

        assert content == "**Generated brief**"
        prompt = mock_llm.complete.call_args.kwargs["messages"][0]["content"]
        assert "Weekly Summary" in prompt
        assert "Acme Rollout" in prompt
        assert "Alice: update 2" in prompt

    async def test_transcript_limited(self, conv, mock_llm):
        """Test only the last 50 messages are sent."""
        await BriefGenerator(mock_llm).generate("weekly_summary", conv, make_messages(60))

        prompt = mock_llm.complete.call_args.kwargs["messages"][0]["content"]
        assert "Alice: update 9\n" not in prompt
        assert "Alice: update 10" in prompt
        assert "Alice: update 59" in prompt

    async def test_exclude_chat(self, conv, mock_llm):
        """Test include_chat=False leaves messages out of the prompt."""
        await BriefGenerator(mock_llm).generate(
            "project_risk", conv, make_messages(3), include_chat=False
        )

        prompt = mock_llm.complete.call_args.kwargs["messages"][0]["content"]
        assert "update" not in prompt

    async def test_llm_failure_falls_back(self, conv):
        """Test LLM errors fall back to the canned brief."""
        llm = Mock()
        llm.complete = AsyncMock(side_effect=RuntimeError("LLM API error: boom"))

        content = await BriefGenerator(llm).generate("issue_snapshot", conv, [])

        assert content == CANNED_BRIEFS["issue_snapshot"]

    async def test_unknown_type(self, conv):
        """Test unknown brief types are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            await BriefGenerator().generate("horoscope", conv, [])
        assert exc_info.value.field == "brief_type"
