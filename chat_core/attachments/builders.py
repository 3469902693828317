"""Attachment builders.

``build_attachment`` is the single construction path for attachments. Each
variant has a checker (required fields) and a builder (payload, subtitle,
linked ids). Builders are pure apart from id and timestamp generation.
"""

from typing import Any, Callable, Mapping
from urllib.parse import urlparse

from ..errors import ValidationError
from ..ids import generate_id
from ..models import (
    AIBriefPayload,
    ApprovalPayload,
    Attachment,
    AttachmentLinks,
    AttachmentType,
    CalendarInvitePayload,
    FilePayload,
    LinkPayload,
    PollPayload,
    RecordPayload,
    TaskPayload,
)
from ..roster import IRoster

FormFields = Mapping[str, Any]

MIN_POLL_OPTIONS = 2
MAX_POLL_OPTIONS = 6

BRIEF_TITLES = {
    "project_risk": "Project Risk Analysis",
    "weekly_summary": "Weekly Summary",
    "meeting_prep": "Meeting Prep Brief",
    "issue_snapshot": "Issue Snapshot",
}

# Used when no generated content is supplied.
CANNED_BRIEFS = {
    "project_risk": (
        "**Risk Assessment**\n\n"
        "**Critical Issues**:\n- Delivery pace behind target\n- Budget burn ahead of timeline\n\n"
        "**Recommendations**:\n1. Rebalance staffing\n2. Review scope with stakeholders"
    ),
    "weekly_summary": (
        "**Weekly Summary**\n\n"
        "**Progress**:\n- Key milestones on track\n\n"
        "**Blockers**:\n- None reported\n\n"
        "**Next Week**:\n- Continue current plan"
    ),
    "meeting_prep": (
        "**Meeting Brief**\n\n"
        "**Agenda**:\n1. Review status\n2. Decide open items\n3. Agree next steps"
    ),
    "issue_snapshot": (
        "**Issue Tracking Snapshot**\n\n"
        "**Active Issues**: see linked records\n\n"
        "**Trending**: no significant change"
    ),
}


def _text(fields: FormFields, name: str) -> str:
    value = fields.get(name)
    if value is None:
        return ""
    return str(value).strip()


def _list(fields: FormFields, name: str) -> list[str]:
    """Accept a list or a comma-separated string; drop blanks."""
    value = fields.get(name) or []
    if isinstance(value, str):
        value = value.split(",")
    return [str(item).strip() for item in value if str(item).strip()]


def _missing(fields: FormFields, *names: str) -> list[str]:
    return [name for name in names if not _text(fields, name)]


def _name(roster: IRoster | None, user_id: str) -> str | None:
    if not roster or not user_id:
        return None
    return roster.display_name(user_id)


# Checkers


def _check_link(fields: FormFields) -> list[str]:
    url = _text(fields, "url")
    if not url:
        return ["url"]
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return ["url"]
    return []


def _check_poll(fields: FormFields) -> list[str]:
    problems = _missing(fields, "question")
    options = _list(fields, "options")
    if not MIN_POLL_OPTIONS <= len(options) <= MAX_POLL_OPTIONS:
        problems.append("options")
    return problems


def _check_ai_brief(fields: FormFields) -> list[str]:
    return [] if _text(fields, "brief_type") in BRIEF_TITLES else ["brief_type"]


_CHECKS: dict[AttachmentType, Callable[[FormFields], list[str]]] = {
    AttachmentType.FILE: lambda f: _missing(f, "file_name"),
    AttachmentType.TASK: lambda f: _missing(f, "title"),
    AttachmentType.CALENDAR_INVITE: lambda f: _missing(
        f, "title", "date", "start_time", "end_time"
    ),
    AttachmentType.RECORD: lambda f: _missing(f, "title"),
    AttachmentType.LINK: _check_link,
    AttachmentType.POLL: _check_poll,
    AttachmentType.APPROVAL: lambda f: _missing(f, "title", "approver"),
    AttachmentType.AI_BRIEF: _check_ai_brief,
}


def _coerce_type(attachment_type: AttachmentType | str) -> AttachmentType:
    try:
        return AttachmentType(attachment_type)
    except ValueError:
        raise ValidationError("type", f"Unknown attachment type: {attachment_type}") from None


def missing_fields(attachment_type: AttachmentType | str, fields: FormFields) -> list[str]:
    """Return every missing or invalid field for the variant (empty when valid)."""
    return _CHECKS[_coerce_type(attachment_type)](fields)


# Builders


def _build_file(fields: FormFields, roster: IRoster | None) -> Attachment:
    payload = FilePayload(
        file_name=_text(fields, "file_name"),
        file_type=_text(fields, "file_type") or "document",
        description=_text(fields, "description"),
        url=_text(fields, "url"),
    )
    return Attachment(
        id=generate_id("att"),
        title=payload.file_name,
        subtitle=payload.file_type,
        payload=payload,
    )


def _build_task(fields: FormFields, roster: IRoster | None) -> Attachment:
    assignee = _text(fields, "assignee")
    payload = TaskPayload(
        title=_text(fields, "title"),
        description=_text(fields, "description"),
        status=_text(fields, "status") or "todo",
        priority=_text(fields, "priority") or "medium",
        due_date=_text(fields, "due_date"),
        assignee=assignee,
        assignee_name=_name(roster, assignee) or "Unassigned",
    )
    return Attachment(
        id=generate_id("att"),
        title=payload.title,
        subtitle=f"Assigned to {payload.assignee_name}",
        payload=payload,
        linked=AttachmentLinks(task_id=generate_id("task")),
    )


def _build_calendar_invite(fields: FormFields, roster: IRoster | None) -> Attachment:
    attendees = tuple(_list(fields, "attendees"))
    names = tuple(
        name for name in (_name(roster, uid) for uid in attendees) if name is not None
    )
    payload = CalendarInvitePayload(
        title=_text(fields, "title"),
        date=_text(fields, "date"),
        start_time=_text(fields, "start_time"),
        end_time=_text(fields, "end_time"),
        location=_text(fields, "location"),
        description=_text(fields, "description"),
        attendees=attendees,
        attendee_names=names,
        generate_brief=bool(fields.get("generate_brief", True)),
    )
    return Attachment(
        id=generate_id("att"),
        title=payload.title,
        subtitle=f"{payload.date} at {payload.start_time}",
        payload=payload,
        linked=AttachmentLinks(event_id=generate_id("event")),
    )


def _build_record(fields: FormFields, roster: IRoster | None) -> Attachment:
    payload = RecordPayload(
        title=_text(fields, "title"),
        record_type=_text(fields, "record_type") or "brief",
        content=_text(fields, "content"),
        tags=tuple(_list(fields, "tags")),
    )
    return Attachment(
        id=generate_id("att"),
        title=payload.title,
        subtitle=payload.record_type,
        payload=payload,
        linked=AttachmentLinks(record_id=generate_id("record")),
    )


def _build_link(fields: FormFields, roster: IRoster | None) -> Attachment:
    payload = LinkPayload(
        url=_text(fields, "url"),
        label=_text(fields, "label"),
        preview_style=_text(fields, "preview_style") or "compact",
    )
    return Attachment(
        id=generate_id("att"),
        title=payload.label or payload.url,
        subtitle=urlparse(payload.url).hostname,
        payload=payload,
    )


def _build_poll(fields: FormFields, roster: IRoster | None) -> Attachment:
    options = tuple(_list(fields, "options"))
    payload = PollPayload(
        question=_text(fields, "question"),
        options=options,
        allow_multiple=bool(fields.get("allow_multiple", False)),
        duration=_text(fields, "duration") or "24h",
        votes={option: () for option in options},
    )
    return Attachment(
        id=generate_id("att"),
        title=payload.question,
        subtitle=f"{len(options)} options",
        payload=payload,
    )


def _build_approval(fields: FormFields, roster: IRoster | None) -> Attachment:
    approver = _text(fields, "approver")
    payload = ApprovalPayload(
        title=_text(fields, "title"),
        approver=approver,
        approver_name=_name(roster, approver) or "Unknown",
        deadline=_text(fields, "deadline"),
        notes=_text(fields, "notes"),
    )
    return Attachment(
        id=generate_id("att"),
        title=payload.title,
        subtitle=f"Awaiting {payload.approver_name}",
        payload=payload,
    )


def _build_ai_brief(fields: FormFields, roster: IRoster | None) -> Attachment:
    brief_type = _text(fields, "brief_type")
    payload = AIBriefPayload(
        brief_type=brief_type,
        include_chat=bool(fields.get("include_chat", True)),
        content=_text(fields, "content") or CANNED_BRIEFS[brief_type],
    )
    return Attachment(
        id=generate_id("att"),
        title=BRIEF_TITLES[brief_type],
        subtitle="Generated by AI",
        payload=payload,
        linked=AttachmentLinks(record_id=generate_id("brief")),
    )


_BUILDERS: dict[AttachmentType, Callable[[FormFields, IRoster | None], Attachment]] = {
    AttachmentType.FILE: _build_file,
    AttachmentType.TASK: _build_task,
    AttachmentType.CALENDAR_INVITE: _build_calendar_invite,
    AttachmentType.RECORD: _build_record,
    AttachmentType.LINK: _build_link,
    AttachmentType.POLL: _build_poll,
    AttachmentType.APPROVAL: _build_approval,
    AttachmentType.AI_BRIEF: _build_ai_brief,
}


def build_attachment(
    attachment_type: AttachmentType | str,
    fields: FormFields,
    roster: IRoster | None = None,
) -> Attachment:
    """
    Validate form fields and build an attachment of the given variant.

    Args:
        attachment_type: Variant to build.
        fields: Raw form values keyed by payload field name.
        roster: Optional lookup used for assignee/approver/attendee names.

    Raises:
        ValidationError: naming the first missing or invalid field.
    """
    kind = _coerce_type(attachment_type)
    problems = missing_fields(kind, fields)
    if problems:
        raise ValidationError(problems[0])

    return _BUILDERS[kind](fields, roster)
