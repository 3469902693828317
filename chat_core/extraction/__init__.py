"""Task extraction module."""

from .extract import FIXTURE_DRAFT, extract_task, is_fixture_text

__all__ = ["FIXTURE_DRAFT", "extract_task", "is_fixture_text"]
