"""Repository-level views over an issue + contributor snapshot."""

import logging
from datetime import datetime
from typing import Iterable, List, Sequence

from stalewatch.config import AnalysisConfig
from stalewatch.models import AssigneeActivity, Contributor, Issue, RepositoryMetrics, StaleIssue
from stalewatch.signals import (
    DEFAULT_STALE_DAYS,
    SECONDS_PER_DAY,
    activity_tier,
    days_since_update,
    is_stale,
)

LOG = logging.getLogger("stalewatch.aggregator")


def _rate(part: int, whole: int) -> float:
    """Percentage of part in whole; 0 when whole is 0."""
    if whole == 0:
        return 0.0
    return part * 100 / whole


def compute_repository_metrics(
    issues: Sequence[Issue],
    contributors: Sequence[Contributor],
    now: datetime | None = None,
    config: AnalysisConfig | None = None,
) -> RepositoryMetrics:
    """Reduce a snapshot into counts and rates.

    Only the stale count depends on now. The average days to close uses a
    denominator floor of 1, so it is 0 when no closed issue carries a
    close timestamp.
    """
    cfg = config or AnalysisConfig()
    open_issues = [i for i in issues if i.state == "open"]
    closed_issues = [i for i in issues if i.state == "closed"]
    stale_count = sum(1 for i in issues if is_stale(i, cfg.stale_threshold_days, now))
    pr_linked_count = sum(1 for i in issues if i.pull_request is not None)

    closed_with_ts = [i for i in closed_issues if i.closed_at is not None]
    total_close_days = sum((i.closed_at - i.created_at).total_seconds() / SECONDS_PER_DAY for i in closed_with_ts)
    average_days_to_close = total_close_days / (len(closed_with_ts) or 1)

    highly_active = sum(1 for c in contributors if c.contributions > cfg.highly_active_contributions)

    metrics = RepositoryMetrics(
        total_issues=len(issues),
        open_count=len(open_issues),
        closed_count=len(closed_issues),
        timed_close_count=len(closed_with_ts),
        stale_count=stale_count,
        pr_linked_count=pr_linked_count,
        contributor_count=len(contributors),
        closure_rate=_rate(len(closed_issues), len(issues)),
        average_days_to_close=average_days_to_close,
        stale_rate=_rate(stale_count, len(open_issues)),
        pr_link_rate=_rate(pr_linked_count, len(open_issues)),
        highly_active_contributors=highly_active,
    )
    LOG.debug(
        "Metrics: %s issues (%s open, %s stale), %s contributors",
        metrics.total_issues,
        metrics.open_count,
        metrics.stale_count,
        metrics.contributor_count,
    )
    return metrics


def find_stale_issues(
    issues: Iterable[Issue],
    threshold_days: float = DEFAULT_STALE_DAYS,
    now: datetime | None = None,
    limit: int | None = None,
) -> List[StaleIssue]:
    """Stale issues, longest idle first (ties broken by issue number)."""
    stale = [
        StaleIssue(issue=i, days_stale=days_since_update(i, now))
        for i in issues
        if is_stale(i, threshold_days, now)
    ]
    stale.sort(key=lambda s: (s.issue.updated_at, s.issue.number))
    if limit is not None:
        return stale[:limit]
    return stale


def summarize_assignee(
    login: str,
    issues: Iterable[Issue],
    contributors: Iterable[Contributor],
    now: datetime | None = None,
    config: AnalysisConfig | None = None,
    exclude_number: int | None = None,
) -> AssigneeActivity:
    """Assignee context for an estimate.

    recent_activity is the tier of the assignee's most recently updated
    open issue (None if they hold none). other_assigned_issues counts the
    open issues assigned to them, minus exclude_number (the issue being
    estimated).
    """
    cfg = config or AnalysisConfig()
    contributions = next((c.contributions for c in contributors if c.login == login), 0)
    assigned = [i for i in issues if i.state == "open" and login in i.assignee_logins]
    recent = None
    if assigned:
        latest = max(i.updated_at for i in assigned)
        recent = activity_tier(latest, now, cfg.active_days, cfg.away_days)
    return AssigneeActivity(
        login=login,
        contributions=contributions,
        recent_activity=recent,
        other_assigned_issues=sum(1 for i in assigned if i.number != exclude_number),
    )


def filter_issues(issues: Iterable[Issue], term: str | None = None) -> List[Issue]:
    """Issues matching a free-text term, in input order.

    Case-insensitive substring match on title, author login, or the issue
    number as text. A blank term matches everything.
    """
    needle = (term or "").strip().lower()
    if not needle:
        return list(issues)
    return [
        i
        for i in issues
        if needle in i.title.lower()
        or needle in str(i.number)
        or (i.user is not None and needle in i.user.login.lower())
    ]


def filter_contributors(contributors: Iterable[Contributor], term: str | None = None) -> List[Contributor]:
    """Contributors whose login contains term (case-insensitive)."""
    needle = (term or "").strip().lower()
    return [c for c in contributors if needle in c.login.lower()]
