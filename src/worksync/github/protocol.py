"""Interface the sync orchestrator expects from an issue tracker."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class CreatedIssue:
    """Reference to an issue returned by ``create_issue``."""

    number: int
    url: str


class IssueTrackerProtocol(Protocol):
    """Remote issue tracker operations used during sync.

    Any exception raised by these methods is treated as a sync failure for
    the item being processed. Pacing, retries and rate-limit handling are
    the implementation's concern.
    """

    def create_issue(self, title: str, body: str, labels: list[str]) -> CreatedIssue:
        """Create an issue and return its number and URL."""
        ...

    def update_issue(self, issue_number: int, title: str, body: str, labels: list[str]) -> None:
        """Replace the title, body and labels of an existing issue."""
        ...

    def close_issue(self, issue_number: int) -> None:
        """Close an issue."""
        ...
