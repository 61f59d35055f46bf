"""Issue timeline event model."""

from pydantic import AwareDatetime, BaseModel

from stalewatch.models.issue import Label, User


class TimelineEvent(BaseModel):
    """Single entry of an issue timeline (assigned, labeled, cross-referenced, ...)."""

    event: str
    created_at: AwareDatetime | None = None
    actor: User | None = None
    assignee: User | None = None
    label: Label | None = None
