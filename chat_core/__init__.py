"""Core module."""

from .app import Application, IApplication
from .attachments import Composer, PollOptions, build_attachment
from .chat import ChatService, IChatService
from .conversation import ConversationAggregate, IncrementUnread, UnreadNotifier
from .errors import (
    ChatError,
    ConversationClosedError,
    EmptyMessageError,
    NotFoundError,
    StaleVersionError,
    ValidationError,
)
from .event_bus import EventBus, IEventBus
from .extraction import extract_task
from .insights import IInsightPipeline, InsightPipeline, analyze
from .llm import ILLMProvider, LLMProvider
from .models import (
    Attachment,
    AttachmentType,
    BusMessage,
    Conversation,
    ConversationType,
    Insight,
    InsightType,
    Message,
    MessageKind,
    TaskDraft,
    Team,
    Topic,
    TraceEvent,
    User,
)
from .roster import IRoster, Roster
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "Team",
    "User",
    "Conversation",
    "ConversationType",
    "Message",
    "MessageKind",
    "Attachment",
    "AttachmentType",
    "Insight",
    "InsightType",
    "TaskDraft",
    "BusMessage",
    "Topic",
    "TraceEvent",
    # Errors
    "ChatError",
    "ValidationError",
    "EmptyMessageError",
    "NotFoundError",
    "StaleVersionError",
    "ConversationClosedError",
    # Components
    "ChatService",
    "IChatService",
    "ConversationAggregate",
    "UnreadNotifier",
    "IncrementUnread",
    "Composer",
    "PollOptions",
    "build_attachment",
    "IInsightPipeline",
    "InsightPipeline",
    "analyze",
    "extract_task",
    "IRoster",
    "Roster",
    "IStorage",
    "Storage",
    "IEventBus",
    "EventBus",
    "ITracker",
    "Tracker",
    "ILLMProvider",
    "LLMProvider",
]
