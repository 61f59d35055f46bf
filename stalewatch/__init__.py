"""Stale assignment detection and completion estimates for issue trackers."""

from stalewatch.aggregator import (
    compute_repository_metrics,
    filter_contributors,
    filter_issues,
    find_stale_issues,
    summarize_assignee,
)
from stalewatch.estimator import CompletionEstimatorClient
from stalewatch.signals import activity_tier, days_since_update, is_stale, issue_status

__all__ = [
    "CompletionEstimatorClient",
    "activity_tier",
    "compute_repository_metrics",
    "days_since_update",
    "filter_contributors",
    "filter_issues",
    "find_stale_issues",
    "is_stale",
    "issue_status",
    "summarize_assignee",
]

__version__ = "0.1.0"
