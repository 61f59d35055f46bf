"""Repository contributor model."""

from pydantic import BaseModel


class Contributor(BaseModel):
    """Contributor with a contribution count."""

    login: str
    avatar_url: str = ""
    html_url: str = ""
    contributions: int = 0
