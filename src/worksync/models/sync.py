"""Result models for sync runs."""

from dataclasses import dataclass, field
from enum import Enum


class SyncAction(str, Enum):
    """What a sync run decided to do with a work item."""

    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"
    CLOSE = "close"


@dataclass
class SyncFailure:
    """A work item whose remote call failed."""

    key: str  # Task code or "file:line" of the comment
    error: str
    action: SyncAction = SyncAction.CREATE


@dataclass
class SyncOutcome:
    """Per-item record of a successful (or dry-run) decision."""

    key: str
    action: SyncAction
    issue_number: int | None = None
    issue_url: str | None = None
    changed_fields: list[str] = field(default_factory=list)


@dataclass
class SyncStatistics:
    """Result of one sync run."""

    outcomes: list[SyncOutcome] = field(default_factory=list)
    failed: list[SyncFailure] = field(default_factory=list)
    dry_run: bool = False

    def _count(self, action: SyncAction) -> int:
        return sum(1 for outcome in self.outcomes if outcome.action == action)

    @property
    def created(self) -> int:
        """Number of issues created."""
        return self._count(SyncAction.CREATE)

    @property
    def updated(self) -> int:
        """Number of issues updated."""
        return self._count(SyncAction.UPDATE)

    @property
    def skipped(self) -> int:
        """Number of items left alone because nothing changed."""
        return self._count(SyncAction.SKIP)

    @property
    def closed(self) -> int:
        """Number of issues closed for removed comments."""
        return self._count(SyncAction.CLOSE)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def total(self) -> int:
        return len(self.outcomes) + len(self.failed)

    @property
    def has_errors(self) -> bool:
        """Whether any item failed."""
        return len(self.failed) > 0

    def outcomes_for(self, action: SyncAction) -> list[SyncOutcome]:
        return [outcome for outcome in self.outcomes if outcome.action == action]
