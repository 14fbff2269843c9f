"""Normalized content snapshot used for change detection."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ContentSnapshot(BaseModel):
    """Normalized form of the issue-relevant fields of a work item.

    Built by ``worksync.sync.change_detector.create_snapshot``; stored on a
    tracking record after every successful sync so the next run can tell
    whether the remote issue needs an update.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    title: str = ""
    description: str = ""
    state: str | None = None
    priority: str | None = None
    assignee: str | None = None
    labels: tuple[str, ...] = Field(default_factory=tuple)
    parent_issue: int | None = None
