"""Repository-level aggregates derived from an issue + contributor snapshot."""

from pydantic import BaseModel

from stalewatch.models.issue import Issue


class RepositoryMetrics(BaseModel):
    """Counts and rates for one repository snapshot.

    Rates are percentages (0-100). A rate whose denominator is zero is 0.
    timed_close_count is the number of closed issues with a close
    timestamp, the denominator of average_days_to_close.
    """

    total_issues: int = 0
    open_count: int = 0
    closed_count: int = 0
    timed_close_count: int = 0
    stale_count: int = 0
    pr_linked_count: int = 0
    contributor_count: int = 0
    closure_rate: float = 0.0
    average_days_to_close: float = 0.0
    stale_rate: float = 0.0
    pr_link_rate: float = 0.0
    highly_active_contributors: int = 0


class StaleIssue(BaseModel):
    """Stale issue together with whole days since its last update."""

    issue: Issue
    days_stale: int
