"""Tracking record models.

A tracking record links one local work item (a planning task or a code
comment) to, optionally, the GitHub issue created for it. Records are a
discriminated union on the ``type`` field, following the same pattern as
provider data: ``PlanningTaskRecord`` and ``CodeCommentRecord`` share a
common base and differ only in their ``source`` shape.

Records are frozen. The record store produces a new instance for every
change so that nothing outside the store can mutate sync state.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, TypeAdapter
from pydantic.alias_generators import to_camel

from .snapshot import ContentSnapshot

TRACKING_FILE_VERSION = 1

SourceKey = tuple[str, ...]


class SyncStatus(str, Enum):
    """Sync state of a tracking record."""

    PENDING = "pending"  # Seen locally, no successful sync yet
    SYNCED = "synced"  # Issue created
    UPDATED = "updated"  # Issue revised after creation
    FAILED = "failed"  # Last sync attempt failed


class RecordType(str, Enum):
    """Kind of local work item a record tracks."""

    PLANNING_TASK = "planning-task"
    CODE_COMMENT = "code-comment"


class _CamelModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class PlanningTaskSource(_CamelModel):
    """Identity of a task within a planning session."""

    session_id: str = Field(..., min_length=1)
    task_id: str = Field(..., min_length=1)

    @property
    def key(self) -> SourceKey:
        return (RecordType.PLANNING_TASK.value, self.session_id, self.task_id)


class CodeCommentSource(_CamelModel):
    """Identity of a comment marker at a file location."""

    comment_id: str = Field(..., min_length=1)
    file_path: str = Field(..., min_length=1)  # Repository-relative
    line_number: PositiveInt  # 1-based

    @property
    def key(self) -> SourceKey:
        return (
            RecordType.CODE_COMMENT.value,
            self.comment_id,
            self.file_path,
            str(self.line_number),
        )


TrackingSource = PlanningTaskSource | CodeCommentSource


class GitHubReference(_CamelModel):
    """The remote issue a record was synced to."""

    issue_number: PositiveInt
    issue_url: str


class _RecordBase(_CamelModel):
    """Fields shared by every tracking record."""

    IMMUTABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"id", "type", "source", "created_at"})

    id: str = Field(..., min_length=1)
    status: SyncStatus = SyncStatus.PENDING
    sync_attempts: int = Field(default=0, ge=0)
    last_error: str | None = None
    github: GitHubReference | None = None
    snapshot: ContentSnapshot | None = None
    last_synced_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def source_key(self) -> SourceKey:
        return self.source.key  # type: ignore[attr-defined]

    @property
    def session_id(self) -> str | None:
        """Planning session id, or None for code comment records."""
        return None

    def to_json_dict(self) -> dict:
        """Serialize with camelCase keys and ISO-8601 timestamps."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PlanningTaskRecord(_RecordBase):
    """Tracking record for a planning task."""

    type: Literal["planning-task"] = "planning-task"
    source: PlanningTaskSource

    @property
    def session_id(self) -> str | None:
        return self.source.session_id


class CodeCommentRecord(_RecordBase):
    """Tracking record for a code comment."""

    type: Literal["code-comment"] = "code-comment"
    source: CodeCommentSource


# Discriminated union of all record types
# Use isinstance() checks to narrow the type
TrackingRecord = Annotated[PlanningTaskRecord | CodeCommentRecord, Field(discriminator="type")]

tracking_record_adapter: TypeAdapter[PlanningTaskRecord | CodeCommentRecord] = TypeAdapter(
    TrackingRecord
)


class RecordDraft(BaseModel):
    """Input to ``RecordStore.add_record``.

    The store assigns ``id`` and timestamps. ``type`` is derived from the
    source shape.
    """

    source: TrackingSource
    status: SyncStatus = SyncStatus.PENDING
    sync_attempts: int = Field(default=0, ge=0)

    @property
    def type(self) -> RecordType:
        if isinstance(self.source, PlanningTaskSource):
            return RecordType.PLANNING_TASK
        return RecordType.CODE_COMMENT


class TrackingStatistics(BaseModel):
    """Record counts grouped by status, type and planning session."""

    total: int = 0
    by_status: dict[str, int] = Field(
        default_factory=lambda: {status.value: 0 for status in SyncStatus}
    )
    by_type: dict[str, int] = Field(
        default_factory=lambda: {record_type.value: 0 for record_type in RecordType}
    )
    by_session: dict[str, int] = Field(default_factory=dict)
