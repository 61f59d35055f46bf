"""Issue tracker adapters."""

from stalewatch.adapters.base import IssueTrackerAdapter, TrackerError
from stalewatch.adapters.github import GitHubAdapter

__all__ = ["GitHubAdapter", "IssueTrackerAdapter", "TrackerError"]
