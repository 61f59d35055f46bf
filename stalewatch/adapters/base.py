"""Abstract base for issue tracker adapters (read-only)."""

from abc import ABC, abstractmethod
from typing import List

from stalewatch.models import Contributor, Issue, Repository, TimelineEvent


class TrackerError(Exception):
    """Raised when an issue tracker API call fails."""

    pass


class IssueTrackerAdapter(ABC):
    """Source of issue, timeline and contributor snapshots for one repository.

    repo is "owner/name".
    """

    @abstractmethod
    def get_repository(self, repo: str) -> Repository:
        """Fetch repository metadata."""
        ...

    @abstractmethod
    def list_issues(
        self,
        repo: str,
        state: str = "all",
        sort: str = "updated",
        direction: str = "desc",
        labels: str | None = None,
        assignee: str | None = None,
        max_pages: int = 1,
    ) -> List[Issue]:
        """List issues, newest activity first by default."""
        ...

    @abstractmethod
    def get_issue(self, repo: str, issue_number: int) -> Issue:
        """Fetch issue by number."""
        ...

    @abstractmethod
    def list_contributors(self, repo: str) -> List[Contributor]:
        """List contributors with contribution counts."""
        ...

    def get_issue_timeline(self, repo: str, issue_number: int) -> List[TimelineEvent]:
        """Timeline events of an issue. Override if supported."""
        return []
