"""GitHub issue tracker integration."""

from .client import (
    GitHubAuthError,
    GitHubClientError,
    GitHubForbiddenError,
    GitHubIssuesClient,
    GitHubNotFoundError,
    GitHubRateLimitError,
)
from .protocol import CreatedIssue, IssueTrackerProtocol

__all__ = [
    "CreatedIssue",
    "GitHubAuthError",
    "GitHubClientError",
    "GitHubForbiddenError",
    "GitHubIssuesClient",
    "GitHubNotFoundError",
    "GitHubRateLimitError",
    "IssueTrackerProtocol",
]
