"""GitHub API adapter."""

import logging
from datetime import datetime
from typing import Any, Dict, List

import requests

from stalewatch.adapters.base import IssueTrackerAdapter, TrackerError
from stalewatch.models import (
    Contributor,
    Issue,
    Label,
    PullRequestRef,
    Repository,
    TimelineEvent,
    User,
)

LOG = logging.getLogger("stalewatch.adapters.github")

TIMELINE_ACCEPT = "application/vnd.github.mockingbird-preview+json"


def _parse_iso(s: str) -> datetime:
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _parse_iso_opt(s: str | None) -> datetime | None:
    return _parse_iso(s) if s else None


def _user_from_api(data: Dict[str, Any] | None) -> User | None:
    if not data:
        return None
    return User(
        login=data.get("login", ""),
        avatar_url=data.get("avatar_url") or "",
        html_url=data.get("html_url") or "",
    )


def _label_from_api(data: Any) -> Label | None:
    if isinstance(data, dict) and "name" in data:
        return Label(name=data["name"], color=data.get("color") or "")
    return None


def _issue_from_api(data: Dict[str, Any]) -> Issue:
    pr = data.get("pull_request")
    labels = [lb for lb in (_label_from_api(d) for d in data.get("labels") or []) if lb is not None]
    assignees = [u for u in (_user_from_api(d) for d in data.get("assignees") or []) if u is not None]
    return Issue(
        id=data["id"],
        number=data["number"],
        title=data.get("title") or "",
        body=data.get("body") or "",
        state=data.get("state", "open"),
        html_url=data.get("html_url") or "",
        created_at=_parse_iso(data["created_at"]),
        updated_at=_parse_iso(data["updated_at"]),
        closed_at=_parse_iso_opt(data.get("closed_at")),
        user=_user_from_api(data.get("user")),
        assignee=_user_from_api(data.get("assignee")),
        assignees=assignees,
        labels=labels,
        pull_request=(
            PullRequestRef(
                url=pr.get("url") or "",
                html_url=pr.get("html_url") or "",
                merged_at=_parse_iso_opt(pr.get("merged_at")),
            )
            if isinstance(pr, dict)
            else None
        ),
        comments=data.get("comments") or 0,
    )


def _repository_from_api(data: Dict[str, Any]) -> Repository:
    owner = data.get("owner") or {}
    return Repository(
        id=data["id"],
        name=data.get("name", ""),
        full_name=data.get("full_name", ""),
        owner=owner.get("login", ""),
        description=data.get("description") or "",
        html_url=data.get("html_url") or "",
        stargazers_count=data.get("stargazers_count") or 0,
        open_issues_count=data.get("open_issues_count") or 0,
        forks_count=data.get("forks_count") or 0,
    )


def _contributor_from_api(data: Dict[str, Any]) -> Contributor:
    return Contributor(
        login=data.get("login", ""),
        avatar_url=data.get("avatar_url") or "",
        html_url=data.get("html_url") or "",
        contributions=data.get("contributions") or 0,
    )


def _timeline_event_from_api(data: Dict[str, Any]) -> TimelineEvent:
    return TimelineEvent(
        event=data.get("event", ""),
        created_at=_parse_iso_opt(data.get("created_at")),
        actor=_user_from_api(data.get("actor")),
        assignee=_user_from_api(data.get("assignee")),
        label=_label_from_api(data.get("label")),
    )


class GitHubAdapter(IssueTrackerAdapter):
    """GitHub REST API implementation (read-only)."""

    def __init__(
        self,
        token: str | None = None,
        api_url: str = "https://api.github.com",
        per_page: int = 100,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self.per_page = per_page
        self._session = requests.Session()
        self._session.headers["Accept"] = "application/vnd.github.v3+json"
        if token:
            self._session.headers["Authorization"] = f"token {token}"

    @classmethod
    def from_config(cls, config: Any) -> "GitHubAdapter":
        return cls(
            token=config.github_token_resolved,
            api_url=config.github.api_url,
            per_page=config.github.per_page,
        )

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        headers: Dict[str, str] | None = None,
    ) -> requests.Response:
        url = f"{self._api_url}{path}" if path.startswith("/") else f"{self._api_url}/{path}"
        resp = self._session.request(method, url, params=params, headers=headers, timeout=30)
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                msg = resp.json().get("message", msg)
            except (ValueError, AttributeError):
                pass
            raise TrackerError(f"{resp.status_code}: {msg}")
        return resp

    def get_repository(self, repo: str) -> Repository:
        return _repository_from_api(self._request("GET", f"/repos/{repo}").json())

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
        params: Dict[str, Any] = {
            "state": state,
            "sort": sort,
            "direction": direction,
            "per_page": self.per_page,
        }
        if labels:
            params["labels"] = labels
        if assignee:
            params["assignee"] = assignee

        issues: List[Issue] = []
        for page in range(1, max_pages + 1):
            data = self._request("GET", f"/repos/{repo}/issues", params={**params, "page": page}).json() or []
            issues.extend(_issue_from_api(d) for d in data)
            if len(data) < self.per_page:
                break
        LOG.debug("Fetched %s issues for %s", len(issues), repo)
        return issues

    def get_issue(self, repo: str, issue_number: int) -> Issue:
        path = f"/repos/{repo}/issues/{issue_number}"
        url = f"{self._api_url}{path}"
        resp = self._session.request("GET", url, timeout=30)
        if resp.status_code == 404:
            raise TrackerError(f"Not found: issue #{issue_number}")
        if resp.status_code >= 400:
            raise TrackerError(f"{resp.status_code}: {resp.text or resp.reason}")
        return _issue_from_api(resp.json())

    def get_issue_timeline(self, repo: str, issue_number: int) -> List[TimelineEvent]:
        resp = self._request(
            "GET",
            f"/repos/{repo}/issues/{issue_number}/timeline",
            headers={"Accept": TIMELINE_ACCEPT},
        )
        return [_timeline_event_from_api(d) for d in resp.json() or []]

    def list_contributors(self, repo: str) -> List[Contributor]:
        resp = self._request("GET", f"/repos/{repo}/contributors", params={"per_page": self.per_page})
        # 204 No Content for empty repositories
        if resp.status_code == 204:
            return []
        return [_contributor_from_api(d) for d in resp.json() or []]
