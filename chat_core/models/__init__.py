"""Core data models for Team Chat."""

from .attachments import (
    AIBriefPayload,
    AIBriefPreview,
    ApprovalPayload,
    ApprovalPreview,
    Attachment,
    AttachmentLinks,
    AttachmentPayload,
    AttachmentPreview,
    AttachmentType,
    CalendarInvitePayload,
    CalendarInvitePreview,
    FilePayload,
    FilePreview,
    LinkPayload,
    LinkPreview,
    PollPayload,
    PollPreview,
    RecordPayload,
    RecordPreview,
    TaskPayload,
    TaskPreview,
)
from .bus import BusMessage, Topic
from .conversation import (
    Conversation,
    ConversationPreferences,
    ConversationType,
    LinkedEntities,
)
from .insights import (
    Insight,
    InsightCandidate,
    InsightType,
    Subtask,
    TaskDraft,
    TaskSource,
)
from .messages import Message, MessageKind, Team, User
from .records import ArchivedRecord, TaskRecord
from .tracing import TraceEvent

__all__ = [
    # Attachments
    "Attachment",
    "AttachmentType",
    "AttachmentLinks",
    "AttachmentPayload",
    "AttachmentPreview",
    "FilePayload",
    "FilePreview",
    "TaskPayload",
    "TaskPreview",
    "CalendarInvitePayload",
    "CalendarInvitePreview",
    "RecordPayload",
    "RecordPreview",
    "LinkPayload",
    "LinkPreview",
    "PollPayload",
    "PollPreview",
    "ApprovalPayload",
    "ApprovalPreview",
    "AIBriefPayload",
    "AIBriefPreview",
    # Conversations
    "Conversation",
    "ConversationPreferences",
    "ConversationType",
    "LinkedEntities",
    # Messages
    "Team",
    "User",
    "Message",
    "MessageKind",
    # Insights
    "Insight",
    "InsightCandidate",
    "InsightType",
    "Subtask",
    "TaskDraft",
    "TaskSource",
    # Records
    "ArchivedRecord",
    "TaskRecord",
    # Bus
    "BusMessage",
    "Topic",
    # Tracing
    "TraceEvent",
]
