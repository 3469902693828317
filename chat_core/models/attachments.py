"""Attachment data models.

An attachment is a tagged union: the payload class decides the variant, and
each payload knows how to project itself into its preview. Instances are
produced by ``chat_core.attachments.build_attachment``; nothing else should
construct them directly.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Union


class AttachmentType(str, Enum):
    """Attachment variants."""

    FILE = "file"
    TASK = "task"
    CALENDAR_INVITE = "calendar_invite"
    RECORD = "record"
    LINK = "link"
    POLL = "poll"
    APPROVAL = "approval"
    AI_BRIEF = "ai_brief"


@dataclass(frozen=True)
class AttachmentLinks:
    """Foreign ids an attachment points at."""

    task_id: str | None = None
    record_id: str | None = None
    event_id: str | None = None
    project_id: str | None = None
    client_id: str | None = None


# Previews


@dataclass(frozen=True)
class FilePreview:
    file_type: str
    description: str


@dataclass(frozen=True)
class TaskPreview:
    status: str
    priority: str
    due_date: str
    assignee_name: str


@dataclass(frozen=True)
class CalendarInvitePreview:
    date: str
    start_time: str
    end_time: str
    location: str
    attendee_names: tuple[str, ...]


@dataclass(frozen=True)
class RecordPreview:
    record_type: str
    tags: tuple[str, ...]


@dataclass(frozen=True)
class LinkPreview:
    preview_style: str


@dataclass(frozen=True)
class PollPreview:
    options: tuple[str, ...]
    allow_multiple: bool
    duration: str


@dataclass(frozen=True)
class ApprovalPreview:
    approver_name: str
    deadline: str
    status: str


@dataclass(frozen=True)
class AIBriefPreview:
    brief_type: str
    include_chat: bool


# Payloads


@dataclass(frozen=True)
class FilePayload:
    file_name: str
    file_type: str = "document"
    description: str = ""
    url: str = ""

    type: ClassVar[AttachmentType] = AttachmentType.FILE

    def preview(self) -> FilePreview:
        return FilePreview(file_type=self.file_type, description=self.description)


@dataclass(frozen=True)
class TaskPayload:
    title: str
    description: str = ""
    status: str = "todo"
    priority: str = "medium"
    due_date: str = ""
    assignee: str = ""
    assignee_name: str = "Unassigned"

    type: ClassVar[AttachmentType] = AttachmentType.TASK

    def preview(self) -> TaskPreview:
        return TaskPreview(
            status=self.status,
            priority=self.priority,
            due_date=self.due_date,
            assignee_name=self.assignee_name,
        )


@dataclass(frozen=True)
class CalendarInvitePayload:
    title: str
    date: str
    start_time: str
    end_time: str
    location: str = ""
    description: str = ""
    attendees: tuple[str, ...] = ()
    attendee_names: tuple[str, ...] = ()
    generate_brief: bool = True

    type: ClassVar[AttachmentType] = AttachmentType.CALENDAR_INVITE

    def preview(self) -> CalendarInvitePreview:
        return CalendarInvitePreview(
            date=self.date,
            start_time=self.start_time,
            end_time=self.end_time,
            location=self.location,
            attendee_names=self.attendee_names,
        )


@dataclass(frozen=True)
class RecordPayload:
    title: str
    record_type: str = "brief"
    content: str = ""
    tags: tuple[str, ...] = ()

    type: ClassVar[AttachmentType] = AttachmentType.RECORD

    def preview(self) -> RecordPreview:
        return RecordPreview(record_type=self.record_type, tags=self.tags)


@dataclass(frozen=True)
class LinkPayload:
    url: str
    label: str = ""
    preview_style: str = "compact"

    type: ClassVar[AttachmentType] = AttachmentType.LINK

    def preview(self) -> LinkPreview:
        return LinkPreview(preview_style=self.preview_style)


@dataclass(frozen=True)
class PollPayload:
    question: str
    options: tuple[str, ...]
    allow_multiple: bool = False
    duration: str = "24h"
    votes: dict[str, tuple[str, ...]] = field(default_factory=dict)  # option -> voter ids

    type: ClassVar[AttachmentType] = AttachmentType.POLL

    def preview(self) -> PollPreview:
        return PollPreview(
            options=self.options,
            allow_multiple=self.allow_multiple,
            duration=self.duration,
        )


@dataclass(frozen=True)
class ApprovalPayload:
    title: str
    approver: str
    approver_name: str = "Unknown"
    deadline: str = ""
    notes: str = ""
    status: str = "pending"

    type: ClassVar[AttachmentType] = AttachmentType.APPROVAL

    def preview(self) -> ApprovalPreview:
        return ApprovalPreview(
            approver_name=self.approver_name,
            deadline=self.deadline,
            status=self.status,
        )


@dataclass(frozen=True)
class AIBriefPayload:
    brief_type: str
    include_chat: bool = True
    content: str = ""

    type: ClassVar[AttachmentType] = AttachmentType.AI_BRIEF

    def preview(self) -> AIBriefPreview:
        return AIBriefPreview(brief_type=self.brief_type, include_chat=self.include_chat)


AttachmentPayload = Union[
    FilePayload,
    TaskPayload,
    CalendarInvitePayload,
    RecordPayload,
    LinkPayload,
    PollPayload,
    ApprovalPayload,
    AIBriefPayload,
]

AttachmentPreview = Union[
    FilePreview,
    TaskPreview,
    CalendarInvitePreview,
    RecordPreview,
    LinkPreview,
    PollPreview,
    ApprovalPreview,
    AIBriefPreview,
]


@dataclass(frozen=True)
class Attachment:
    """A structured, typed object embedded in a message."""

    id: str
    title: str
    payload: AttachmentPayload
    subtitle: str | None = None
    linked: AttachmentLinks = field(default_factory=AttachmentLinks)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def type(self) -> AttachmentType:
        return self.payload.type

    @property
    def preview(self) -> AttachmentPreview:
        """Rendering-safe projection, always recomputed from the payload."""
        return self.payload.preview()

    def to_dict(self) -> dict:
        """Serialize to the JSON-friendly envelope used by the API and storage."""
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "subtitle": self.subtitle,
            "preview": asdict(self.preview),
            "linked": asdict(self.linked),
            "payload": asdict(self.payload),
            "created_at": self.created_at.isoformat(),
        }
