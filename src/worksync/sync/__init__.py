"""Work item to GitHub issue synchronization."""

from .change_detector import changed_fields, create_snapshot, has_changed, normalize_text
from .issue_builder import IssueContent, build_comment_issue, build_task_issue, tracking_marker
from .labels import labels_for_comment, labels_for_task
from .orchestrator import SyncOrchestrator, item_key

__all__ = [
    "IssueContent",
    "SyncOrchestrator",
    "build_comment_issue",
    "build_task_issue",
    "changed_fields",
    "create_snapshot",
    "has_changed",
    "item_key",
    "labels_for_comment",
    "labels_for_task",
    "normalize_text",
    "tracking_marker",
]
