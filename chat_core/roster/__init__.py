"""Roster module."""

from .roster import IRoster, Roster

__all__ = ["IRoster", "Roster"]
