"""Tag data models."""

from dataclasses import dataclass


@dataclass
class Tag:
    """Repository tag."""

    name: str
    target: str
    message: str | None
    commit_id: str | None = None
