"""Attachment builders and composer."""

from .builders import (
    BRIEF_TITLES,
    MAX_POLL_OPTIONS,
    MIN_POLL_OPTIONS,
    build_attachment,
    missing_fields,
)
from .composer import Composer, PollOptions

__all__ = [
    "BRIEF_TITLES",
    "MAX_POLL_OPTIONS",
    "MIN_POLL_OPTIONS",
    "build_attachment",
    "missing_fields",
    "Composer",
    "PollOptions",
]
