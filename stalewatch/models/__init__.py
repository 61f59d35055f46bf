"""Data models for issues, contributors, repositories and analyses (Pydantic)."""

from stalewatch.models.analysis import (
    FALLBACK_ANALYSIS,
    ActivityTier,
    AssigneeActivity,
    CompletionAnalysis,
    EstimateRequest,
    EstimateResult,
    IssueSummary,
    RepoStats,
    Risk,
)
from stalewatch.models.contributor import Contributor
from stalewatch.models.issue import Issue, Label, PullRequestRef, User
from stalewatch.models.metrics import RepositoryMetrics, StaleIssue
from stalewatch.models.repository import Repository
from stalewatch.models.timeline import TimelineEvent

__all__ = [
    "FALLBACK_ANALYSIS",
    "ActivityTier",
    "AssigneeActivity",
    "CompletionAnalysis",
    "Contributor",
    "EstimateRequest",
    "EstimateResult",
    "Issue",
    "IssueSummary",
    "Label",
    "PullRequestRef",
    "RepoStats",
    "Repository",
    "RepositoryMetrics",
    "Risk",
    "StaleIssue",
    "TimelineEvent",
    "User",
]
