"""Data models."""

from .config import CommentScanConfig, GitHubConfig, WorksyncConfig
from .snapshot import ContentSnapshot
from .sync import SyncAction, SyncFailure, SyncOutcome, SyncStatistics
from .tracking import (
    TRACKING_FILE_VERSION,
    CodeCommentRecord,
    CodeCommentSource,
    GitHubReference,
    PlanningTaskRecord,
    PlanningTaskSource,
    RecordDraft,
    RecordType,
    SourceKey,
    SyncStatus,
    TrackingRecord,
    TrackingSource,
    TrackingStatistics,
    tracking_record_adapter,
)
from .work_items import CodeComment, CommentType, PlanningSession, PlanningTask

__all__ = [
    "TRACKING_FILE_VERSION",
    "CodeComment",
    "CodeCommentRecord",
    "CodeCommentSource",
    "CommentScanConfig",
    "CommentType",
    "ContentSnapshot",
    "GitHubConfig",
    "GitHubReference",
    "PlanningSession",
    "PlanningTask",
    "PlanningTaskRecord",
    "PlanningTaskSource",
    "RecordDraft",
    "RecordType",
    "SourceKey",
    "SyncAction",
    "SyncFailure",
    "SyncOutcome",
    "SyncStatistics",
    "SyncStatus",
    "TrackingRecord",
    "TrackingSource",
    "TrackingStatistics",
    "WorksyncConfig",
    "tracking_record_adapter",
]
