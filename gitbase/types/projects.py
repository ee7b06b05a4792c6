"""Project-related data models."""

from dataclasses import dataclass
from datetime import datetime

from gitbase.types.commits import Commit


@dataclass
class Project:
    """Project information."""

    id: int
    name: str
    path_with_namespace: str
    default_branch: str | None
    visibility: str  # "private", "internal" or "public"
    description: str | None
    namespace_id: int | None
    created_at: datetime | None
    updated_at: datetime | None
    last_commit: Commit | None = None


@dataclass
class ProjectPage:
    """One page of a user's projects."""

    projects: list[Project]
    total: int
    has_more: bool
