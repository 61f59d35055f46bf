"""Repository metadata model."""

from pydantic import BaseModel


class Repository(BaseModel):
    """Repository metadata (name and counters)."""

    id: int
    name: str
    full_name: str
    owner: str = ""
    description: str = ""
    html_url: str = ""
    stargazers_count: int = 0
    open_issues_count: int = 0
    forks_count: int = 0
