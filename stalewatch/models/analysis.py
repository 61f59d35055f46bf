"""Completion analysis models: estimator request, response and result."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from stalewatch.models.metrics import RepositoryMetrics

ActivityTier = Literal["active", "away", "offline"]
Risk = Literal["low", "medium", "high"]


class CompletionAnalysis(BaseModel):
    """Estimate of whether and when an assigned issue will be resolved.

    Field aliases match the estimator's JSON (camelCase); attributes are
    snake_case. Anything that does not validate is an estimator failure.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    completion_probability: int = Field(alias="completionProbability", ge=0, le=100)
    estimated_days: int = Field(alias="estimatedDays", ge=0)
    is_user_active: bool = Field(alias="isUserActive")
    risk: Risk
    reasoning: str
    recommendation: str


FALLBACK_ANALYSIS = CompletionAnalysis(
    completion_probability=50,
    estimated_days=7,
    is_user_active=False,
    risk="medium",
    reasoning="Unable to analyze - using default estimates",
    recommendation="Monitor this issue for activity",
)


class AssigneeActivity(BaseModel):
    """What is known about the assignee when asking for an estimate."""

    login: str = ""
    contributions: int = 0
    recent_activity: ActivityTier | None = None
    other_assigned_issues: int = 0


class RepoStats(BaseModel):
    """Repository context for an estimate."""

    avg_time_to_close: float | None = None
    open_issues: int = 0

    @classmethod
    def from_metrics(cls, metrics: RepositoryMetrics) -> "RepoStats":
        """Build from aggregated metrics; no timed closes means unknown average."""
        avg = metrics.average_days_to_close if metrics.timed_close_count else None
        return cls(avg_time_to_close=avg, open_issues=metrics.open_count)


class IssueSummary(BaseModel):
    """Issue fields sent to the estimator."""

    title: str
    number: int
    state: str
    assignee: str | None = None
    created_at: datetime
    updated_at: datetime
    comments: int = 0
    has_pull_request: bool = False


class EstimateRequest(BaseModel):
    """Payload for one estimator call."""

    issue: IssueSummary
    assignee_activity: AssigneeActivity
    repo_stats: RepoStats


class EstimateResult(BaseModel):
    """Outcome of an estimate: always carries an analysis.

    source is "estimator" for a remote answer and "fallback" when the
    estimator failed (error says why). cached is set when the result was
    served from the memo window instead of a new call.
    """

    model_config = ConfigDict(frozen=True)

    analysis: CompletionAnalysis
    source: Literal["estimator", "fallback"]
    error: str | None = None
    cached: bool = False

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"
