"""AI brief module."""

from .generator import BriefGenerator

__all__ = ["BriefGenerator"]
