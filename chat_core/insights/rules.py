"""Rule-based insight detection.

Intent detection is a fixed keyword set, not a model.
"""

import random

from ..models import InsightCandidate, InsightType

TRIGGER_PHRASES = ("due", "by tomorrow", "please", "draft", "send", "pull data")

PREVIEW_LENGTH = 50


def find_trigger(text: str) -> str | None:
    """Return the first trigger phrase contained in text (case-insensitive)."""
    lowered = text.lower()
    for phrase in TRIGGER_PHRASES:
        if phrase in lowered:
            return phrase
    return None


def analyze(
    text: str,
    general_probability: float = 0.0,
    rng: random.Random | None = None,
) -> list[InsightCandidate]:
    """
    Inspect message text and return insight candidates in emission order.

    A trigger phrase yields one task recommendation capturing the full text.
    Independently, a general "discussion focus" insight is drawn with
    ``general_probability``.

    Args:
        text: Original message text.
        general_probability: Chance of the general insight, 0 disables it.
        rng: Random source for the general draw; module random if omitted.
    """
    candidates: list[InsightCandidate] = []
    preview = text[:PREVIEW_LENGTH]

    if find_trigger(text):
        candidates.append(
            InsightCandidate(
                type=InsightType.TASK_RECOMMENDATION,
                title="Suggested task",
                description=f'Based on your message: "{preview}..."',
                captured_text=text,
            )
        )

    # Stub: stands in for an ambient-analysis signal that has no trigger rule yet.
    if general_probability > 0 and (rng or random).random() < general_probability:
        candidates.append(
            InsightCandidate(
                type=InsightType.GENERAL,
                title="Discussion focus",
                description=f'The conversation is currently focused on: "{preview}..."',
            )
        )

    return candidates
