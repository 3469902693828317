"""Insight analysis module."""

from .pipeline import IInsightPipeline, InsightPipeline, InsightSink, conversation_rng
from .rules import TRIGGER_PHRASES, analyze, find_trigger

__all__ = [
    "IInsightPipeline",
    "InsightPipeline",
    "InsightSink",
    "TRIGGER_PHRASES",
    "analyze",
    "conversation_rng",
    "find_trigger",
]
