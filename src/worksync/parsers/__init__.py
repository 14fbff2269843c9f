"""Parsers for local work items."""

from .code_comments import (
    CommentScanResult,
    extract_metadata,
    generate_comment_id,
    iter_source_files,
    parse_comments,
    scan_code_comments,
)
from .planning_session import (
    PlanningSessionError,
    parse_planning_session,
    parse_todos,
    update_todos_with_links,
)

__all__ = [
    "CommentScanResult",
    "PlanningSessionError",
    "extract_metadata",
    "generate_comment_id",
    "iter_source_files",
    "parse_comments",
    "parse_planning_session",
    "parse_todos",
    "scan_code_comments",
    "update_todos_with_links",
]
