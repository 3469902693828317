"""Content generation for ai_brief attachments."""

from ..attachments.builders import BRIEF_TITLES, CANNED_BRIEFS
from ..errors import ValidationError
from ..llm import ILLMProvider
from ..logging_config import get_logger, log_context
from ..models import Conversation, Message

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You write short briefs for a team workspace. "
    "Use markdown headings in bold and bullet lists. Stay under 200 words."
)

TRANSCRIPT_LIMIT = 50


class BriefGenerator:
    """Writes brief content with the LLM when available, canned text otherwise."""

    def __init__(self, llm_provider: ILLMProvider | None = None):
        self._llm = llm_provider

    async def generate(
        self,
        brief_type: str,
        conversation: Conversation,
        messages: list[Message],
        include_chat: bool = True,
    ) -> str:
        """Return markdown content for the brief type."""
        if brief_type not in BRIEF_TITLES:
            raise ValidationError("brief_type")

        if self._llm is None:
            return CANNED_BRIEFS[brief_type]

        prompt = [f"Write a {BRIEF_TITLES[brief_type]} for '{conversation.title}'."]
        if include_chat and messages:
            prompt.append("Recent conversation:")
            prompt.extend(
                f"{m.sender_name}: {m.text}" for m in messages[-TRANSCRIPT_LIMIT:] if m.text
            )

        try:
            return await self._llm.complete(
                messages=[{"role": "user", "content": "\n".join(prompt)}],
                system=SYSTEM_PROMPT,
            )
        except Exception as e:
            logger.error(
                f"Brief generation failed, using canned brief: {e}",
                exc_info=True,
                extra=log_context(conversation.id, brief_type=brief_type),
            )
            return CANNED_BRIEFS[brief_type]
