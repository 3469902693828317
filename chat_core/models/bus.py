"""Event bus data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Topic(str, Enum):
    """EventBus topics."""

    MESSAGES = "messages"
    INSIGHTS = "insights"
    TASKS = "tasks"
    RECORDS = "records"


@dataclass
class BusMessage:
    """A domain event exchanged through EventBus."""

    id: str
    topic: Topic
    payload: dict  # varies by topic
    source: str  # component that published
    timestamp: datetime
