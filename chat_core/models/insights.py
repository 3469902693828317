"""Insight and task draft data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class InsightType(str, Enum):
    """Kinds of insight produced by analysis."""

    TASK_RECOMMENDATION = "task_recommendation"
    GENERAL = "general"


@dataclass(frozen=True)
class InsightCandidate:
    """Output of the rule engine before it is bound to a conversation."""

    type: InsightType
    title: str
    description: str
    captured_text: str | None = None


@dataclass
class Insight:
    """A system-produced observation about a conversation."""

    id: str
    type: InsightType
    title: str
    description: str
    source_message_id: str | None = None
    captured_text: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if self.type == InsightType.TASK_RECOMMENDATION and self.captured_text is None:
            raise ValueError("task_recommendation insights require captured_text")


@dataclass(frozen=True)
class Subtask:
    id: str
    title: str


@dataclass(frozen=True)
class TaskDraft:
    """Unpersisted task proposal produced by extraction."""

    title: str
    description: str
    subtasks: tuple[Subtask, ...] = ()


@dataclass(frozen=True)
class TaskSource:
    """Provenance passed to the task collaborator alongside a draft."""

    source_message_id: str | None
    source_conversation_id: str
    source_preview_text: str
    source_sender_name: str
