"""Issue data models."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Issue:
    """Project issue."""

    iid: int
    title: str
    description: str | None
    state: str  # "opened" or "closed"
    labels: list[str] = field(default_factory=list)
    author_username: str | None = None
    web_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def has_label(self, label: str) -> bool:
        return label in self.labels


@dataclass
class IssuePage:
    """One page of a project's issues."""

    issues: list[Issue]
    total: int
    has_more: bool
