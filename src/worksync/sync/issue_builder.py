"""Issue title and body rendering for work items."""

from __future__ import annotations

from dataclasses import dataclass

from ..models import (
    CodeComment,
    CodeCommentSource,
    PlanningSession,
    PlanningTask,
    PlanningTaskSource,
)

MAX_TITLE_LENGTH = 100
MARKER_PREFIX = "worksync"


@dataclass(frozen=True)
class IssueContent:
    """Rendered title, body and labels for a remote issue."""

    title: str
    body: str
    labels: list[str]


def tracking_marker(source: PlanningTaskSource | CodeCommentSource) -> str:
    """Hidden HTML comment identifying the work item an issue was created for.

    Lets an operator find issues created by a run whose tracking file was
    never saved.
    """
    if isinstance(source, PlanningTaskSource):
        return f"<!-- {MARKER_PREFIX}:planning-task:{source.session_id}:{source.task_id} -->"
    return f"<!-- {MARKER_PREFIX}:code-comment:{source.comment_id} -->"


def _truncate(text: str, limit: int = MAX_TITLE_LENGTH) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def build_task_title(task: PlanningTask) -> str:
    return _truncate(f"[{task.code}] {task.title}")


def build_task_body(
    task: PlanningTask, session: PlanningSession, parent_issue: int | None = None
) -> str:
    parts: list[str] = []
    if task.description.strip():
        parts.append(task.description.strip())

    details = [f"- **Planning session:** {session.session_id}"]
    if session.title:
        details[0] += f" ({session.title})"
    details.append(f"- **Task:** {task.code}")
    if task.parent_code:
        details.append(f"- **Parent task:** {task.parent_code}")
        if parent_issue is not None:
            details.append(f"- **Parent issue:** #{parent_issue}")
    details.append(f"- **State:** {task.state}")
    parts.append("\n".join(details))

    parts.append(tracking_marker(session.source_for(task)))
    return "\n\n".join(parts) + "\n"


def build_comment_title(comment: CodeComment) -> str:
    return _truncate(f"{comment.type.value}: {comment.content}")


def build_comment_body(comment: CodeComment, repository: str | None = None) -> str:
    """Render the body for a code comment issue.

    Args:
        comment: The comment
        repository: "owner/repo" used to link the file location, if known
    """
    location = f"{comment.file_path}:{comment.line_number}"
    if repository:
        url = (
            f"https://github.com/{repository}/blob/HEAD/"
            f"{comment.file_path}#L{comment.line_number}"
        )
        location = f"[{location}]({url})"

    details = [f"- **Type:** {comment.type.value}", f"- **Location:** {location}"]
    if comment.priority:
        details.append(f"- **Priority:** {comment.priority}")
    if comment.assignee:
        details.append(f"- **Assignee:** @{comment.assignee}")

    parts = [comment.content.strip() or "(no description)", "\n".join(details)]
    parts.append(tracking_marker(comment.source))
    return "\n\n".join(parts) + "\n"


def build_task_issue(
    task: PlanningTask,
    session: PlanningSession,
    labels: list[str],
    parent_issue: int | None = None,
) -> IssueContent:
    return IssueContent(
        build_task_title(task), build_task_body(task, session, parent_issue), list(labels)
    )


def build_comment_issue(
    comment: CodeComment, labels: list[str], repository: str | None = None
) -> IssueContent:
    return IssueContent(
        build_comment_title(comment), build_comment_body(comment, repository), list(labels)
    )
