"""Change detection between a work item and its last synced snapshot.

Everything here is pure: the same inputs always produce the same snapshot
and the same verdict, so a second sync run with no local edits sees no
changes.
"""

from __future__ import annotations

from typing import assert_never

from ..models import CodeComment, ContentSnapshot, PlanningTask

WorkItem = PlanningTask | CodeComment

SNAPSHOT_FIELDS: tuple[str, ...] = tuple(ContentSnapshot.model_fields)


def normalize_text(value: str | None) -> str:
    """Normalize line endings, strip trailing whitespace and outer blank lines."""
    if not value:
        return ""
    lines = value.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    return "\n".join(line.rstrip() for line in lines).strip("\n")


def _normalize_optional(value: str | None) -> str | None:
    normalized = normalize_text(value)
    return normalized or None


def normalize_labels(labels: list[str] | tuple[str, ...] | None) -> tuple[str, ...]:
    """De-duplicate and sort labels, dropping blanks."""
    if not labels:
        return ()
    return tuple(sorted({label.strip() for label in labels if label and label.strip()}))


def create_snapshot(
    item: WorkItem, labels: list[str] | None = None, parent_issue: int | None = None
) -> ContentSnapshot:
    """Build the normalized snapshot of a work item.

    Args:
        item: Planning task or code comment
        labels: Labels that will be attached to the issue, if known. Defaults
            to the item's own labels (code comments) or none (planning tasks).
        parent_issue: Issue number of the parent task, for subtasks whose parent
            already has an issue
    """
    if isinstance(item, PlanningTask):
        return ContentSnapshot(
            title=normalize_text(item.title),
            description=normalize_text(item.description),
            state=item.state,
            labels=normalize_labels(labels),
            parent_issue=parent_issue,
        )
    if isinstance(item, CodeComment):
        return ContentSnapshot(
            title=normalize_text(item.content),
            priority=_normalize_optional(item.priority),
            assignee=_normalize_optional(item.assignee),
            labels=normalize_labels(labels if labels is not None else item.labels),
        )
    assert_never(item)


def changed_fields(previous: ContentSnapshot | None, current: ContentSnapshot) -> list[str]:
    """Names of snapshot fields that differ, in declaration order.

    A missing previous snapshot means every field counts as changed.
    """
    if previous is None:
        return list(SNAPSHOT_FIELDS)
    return [
        name for name in SNAPSHOT_FIELDS if getattr(previous, name) != getattr(current, name)
    ]


def has_changed(previous: ContentSnapshot | None, current: ContentSnapshot) -> bool:
    """Whether the current content differs from the last synced snapshot."""
    return bool(changed_fields(previous, current))
