"""Issue tracker issue model (GitHub REST shape)."""

from typing import List, Literal

from pydantic import AwareDatetime, BaseModel, Field


class User(BaseModel):
    """Account reference (issue author, assignee, timeline actor)."""

    login: str
    avatar_url: str = ""
    html_url: str = ""


class Label(BaseModel):
    """Issue label."""

    name: str
    color: str = ""


class PullRequestRef(BaseModel):
    """Marker for a pull request linked to the issue."""

    url: str = ""
    html_url: str = ""
    merged_at: AwareDatetime | None = None


class Issue(BaseModel):
    """Issue snapshot as fetched from the tracker. Read-only to the core.

    Timestamps must carry a timezone; naive values are rejected.
    """

    id: int
    number: int
    title: str
    body: str = ""
    state: Literal["open", "closed"]
    html_url: str = ""
    created_at: AwareDatetime
    updated_at: AwareDatetime
    closed_at: AwareDatetime | None = None
    user: User | None = None
    assignee: User | None = None
    assignees: List[User] = Field(default_factory=list)
    labels: List[Label] = Field(default_factory=list)
    pull_request: PullRequestRef | None = None
    comments: int = 0

    @property
    def assignee_logins(self) -> List[str]:
        """Logins of everyone assigned, primary assignee first, no duplicates."""
        logins: List[str] = []
        if self.assignee is not None:
            logins.append(self.assignee.login)
        for user in self.assignees:
            if user.login not in logins:
                logins.append(user.login)
        return logins
