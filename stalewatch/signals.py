"""Per-issue signals: staleness, assignee activity tier, display status.

All functions are pure. Time-dependent ones take an explicit ``now``
(timezone-aware); when omitted the current UTC time is used.
"""

import math
from datetime import UTC, datetime
from typing import Literal

from stalewatch.models import ActivityTier, Contributor, Issue

DEFAULT_STALE_DAYS = 7
DEFAULT_ACTIVE_DAYS = 1
DEFAULT_AWAY_DAYS = 7
DEFAULT_ACTIVE_CONTRIBUTIONS = 50

SECONDS_PER_DAY = 86_400

IssueStatus = Literal["pr_linked", "closed", "stale", "in_progress", "open"]
ContributorBadge = Literal["top", "active"]


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(UTC)


def elapsed_days(since: datetime, now: datetime | None = None) -> float:
    """Fractional days between since and now."""
    return (_now(now) - since).total_seconds() / SECONDS_PER_DAY


def has_assignee(issue: Issue) -> bool:
    return issue.assignee is not None or len(issue.assignees) > 0


def is_stale(issue: Issue, threshold_days: float = DEFAULT_STALE_DAYS, now: datetime | None = None) -> bool:
    """Assigned, open, no linked PR, and not updated for more than
    threshold_days.

    A linked pull request counts as activity, so such issues are never
    stale. The comparison is strict: exactly threshold_days is not stale.
    """
    if not has_assignee(issue):
        return False
    if issue.state == "closed":
        return False
    if issue.pull_request is not None:
        return False
    return elapsed_days(issue.updated_at, now) > threshold_days


def activity_tier(
    last_update: datetime,
    now: datetime | None = None,
    active_days: float = DEFAULT_ACTIVE_DAYS,
    away_days: float = DEFAULT_AWAY_DAYS,
) -> ActivityTier:
    """Coarse recency of an assignee: active (< 1 day), away (< 7 days), else
    offline.

    Only meaningful for assigned issues; callers check has_assignee first.
    """
    days = elapsed_days(last_update, now)
    if days < active_days:
        return "active"
    if days < away_days:
        return "away"
    return "offline"


def days_since_update(issue: Issue, now: datetime | None = None) -> int:
    """Whole days since the issue was last updated (floored)."""
    return math.floor(elapsed_days(issue.updated_at, now))


def issue_status(
    issue: Issue,
    threshold_days: float = DEFAULT_STALE_DAYS,
    now: datetime | None = None,
) -> IssueStatus:
    """Display status of an issue.

    Checked in order: linked PR, closed, stale, assigned (in progress),
    otherwise open.
    """
    if issue.pull_request is not None:
        return "pr_linked"
    if issue.state == "closed":
        return "closed"
    if is_stale(issue, threshold_days, now):
        return "stale"
    if has_assignee(issue):
        return "in_progress"
    return "open"


def contributor_badge(
    contributor: Contributor,
    rank: int,
    active_threshold: int = DEFAULT_ACTIVE_CONTRIBUTIONS,
) -> ContributorBadge | None:
    """Badge for a contributor at 1-based rank in the contributor list."""
    if rank == 1:
        return "top"
    if contributor.contributions > active_threshold:
        return "active"
    return None
