"""Composer-side attachment handling (pre-send)."""

from ..errors import NotFoundError, ValidationError
from ..models import Attachment, AttachmentType
from ..roster import IRoster
from .builders import MAX_POLL_OPTIONS, MIN_POLL_OPTIONS, FormFields, build_attachment, missing_fields


class PollOptions:
    """Editable option list for the poll form, bounded to 2..6 entries."""

    def __init__(self, options: list[str] | None = None):
        self._options = list(options) if options else ["", ""]
        while len(self._options) < MIN_POLL_OPTIONS:
            self._options.append("")
        del self._options[MAX_POLL_OPTIONS:]

    @property
    def options(self) -> list[str]:
        return self._options.copy()

    @property
    def can_add(self) -> bool:
        return len(self._options) < MAX_POLL_OPTIONS

    @property
    def can_remove(self) -> bool:
        return len(self._options) > MIN_POLL_OPTIONS

    def add(self) -> bool:
        """Append a blank option; no-op at the maximum."""
        if not self.can_add:
            return False
        self._options.append("")
        return True

    def remove(self, index: int) -> bool:
        """Drop the option at index; no-op at the minimum."""
        if not self.can_remove:
            return False
        del self._options[index]
        return True

    def update(self, index: int, value: str) -> None:
        self._options[index] = value

    def valid_options(self) -> list[str]:
        return [option.strip() for option in self._options if option.strip()]


class Composer:
    """Holds attachments for a message that has not been sent yet."""

    def __init__(self, roster: IRoster | None = None):
        self._roster = roster
        self._attachments: list[Attachment] = []

    @property
    def attachments(self) -> list[Attachment]:
        return self._attachments.copy()

    def can_submit(self, attachment_type: AttachmentType | str, fields: FormFields) -> bool:
        """True when every required field for the variant is present and valid."""
        return not missing_fields(attachment_type, fields)

    def attach(self, attachment_type: AttachmentType | str, fields: FormFields) -> Attachment:
        """Build and queue an attachment. The builder only ever sees a valid field set."""
        problems = missing_fields(attachment_type, fields)
        if problems:
            raise ValidationError(problems[0])
        attachment = build_attachment(attachment_type, fields, self._roster)
        self._attachments.append(attachment)
        return attachment

    def remove(self, attachment_id: str) -> None:
        for index, attachment in enumerate(self._attachments):
            if attachment.id == attachment_id:
                del self._attachments[index]
                return
        raise NotFoundError("attachment", attachment_id)

    def take(self) -> list[Attachment]:
        """Hand the queued attachments to a send and clear the composer."""
        attachments, self._attachments = self._attachments, []
        return attachments
