"""Default label computation for synced issues."""

from collections.abc import Callable

from ..models import CodeComment, PlanningSession, PlanningTask

TaskLabeler = Callable[[PlanningTask, PlanningSession], list[str]]
CommentLabeler = Callable[[CodeComment], list[str]]


def labels_for_task(
    task: PlanningTask, session: PlanningSession, extra: list[str] | None = None
) -> list[str]:
    """Labels for a planning task issue."""
    labels = ["from:planning", f"planning:{session.session_id}"]
    if task.completed:
        labels.append("status:completed")
    if task.level > 0:
        labels.append("subtask")
    labels.extend(extra or [])
    return _dedupe(labels)


def labels_for_comment(comment: CodeComment, extra: list[str] | None = None) -> list[str]:
    """Labels for a code comment issue."""
    labels = ["from:code-comment", comment.type.value.lower()]

    if comment.priority:
        labels.append(f"priority:{comment.priority.lower()}")

    labels.extend(comment.labels)

    # File-based labels
    path = comment.file_path
    if (
        "/test/" in f"/{path}"
        or "/tests/" in f"/{path}"
        or path.rsplit("/", 1)[-1].startswith("test_")
        or ".test." in path
    ):
        labels.append("file:test")
    elif "/src/" in f"/{path}":
        labels.append("file:src")

    labels.extend(extra or [])
    return _dedupe(labels)


def _dedupe(labels: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for label in labels:
        if label not in seen:
            seen.add(label)
            result.append(label)
    return result
