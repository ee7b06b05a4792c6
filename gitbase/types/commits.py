"""Commit-related data models."""

import base64
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class FileChange:
    """A file to write, as supplied by the editor or import layer."""

    path: str
    content: str | bytes
    is_binary: bool = False

    def encoded(self) -> tuple[str, str]:
        """Return (content, encoding) as expected by the commits API."""
        if self.is_binary or isinstance(self.content, bytes):
            raw = self.content if isinstance(self.content, bytes) else self.content.encode()
            return base64.b64encode(raw).decode("ascii"), "base64"
        return self.content, "text"


@dataclass
class CommitAction:
    """One entry of a multi-file commit."""

    action: str  # "create", "update" or "delete"
    file_path: str
    content: str | None = None
    encoding: str = "text"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"action": self.action, "file_path": self.file_path}
        if self.action != "delete":
            data["content"] = self.content or ""
            data["encoding"] = self.encoding
        return data


@dataclass
class CommitStats:
    """Line statistics of a commit."""

    additions: int
    deletions: int
    total: int


@dataclass
class Commit:
    """Commit information."""

    id: str
    short_id: str
    title: str
    message: str
    author_name: str | None
    author_email: str | None
    created_at: datetime | None
    committed_date: datetime | None
    parent_ids: list[str] = field(default_factory=list)
    stats: CommitStats | None = None


@dataclass
class CommitPage:
    """One page of commit history."""

    commits: list[Commit]
    total: int
    has_more: bool


@dataclass
class CommitResult:
    """Outcome of writing a set of files to a branch."""

    commit: Commit | None
    branch: str
    redirected: bool = False
    degraded: bool = False
    failed_paths: list[str] = field(default_factory=list)
    merge_request_iid: int | None = None


@dataclass
class Diff:
    """Per-file diff of a commit."""

    old_path: str
    new_path: str
    a_mode: str | None
    b_mode: str | None
    diff: str
    new_file: bool
    renamed_file: bool
    deleted_file: bool
