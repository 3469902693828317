"""Models returned by the task and records adapters."""

from dataclasses import dataclass, field
from datetime import datetime

from .insights import TaskDraft, TaskSource


@dataclass
class TaskRecord:
    """A task accepted by the task collaborator."""

    id: str
    draft: TaskDraft
    source: TaskSource
    created_at: datetime


@dataclass
class ArchivedRecord:
    """A message or transcript saved to records."""

    id: str
    conversation_id: str
    title: str
    content: str
    created_at: datetime
    message_ids: list[str] = field(default_factory=list)
