"""
Branch naming conventions.

Task branches carry their creation time (``task-<epochMillis>``) and issue
branches their issue number (``issue-<iid>``). Backup, removed and temporary
branches are derived from those names. Everything that reads or writes these
names goes through this module, as does the URL path GitLab derives from a
project name.
"""

import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from gitbase.exceptions import InvalidBranchNameError

TASK_PREFIX = "task-"
ISSUE_PREFIX = "issue-"
BACKUP_PREFIX = "backup-"
REMOVED_PREFIX = "removed-"
TEMP_PREFIX = "temp-"

_TASK_RE = re.compile(r"^task-(\d{1,15})$")
_ISSUE_RE = re.compile(r"^issue-(\d{1,10})$")
_BACKUP_RE = re.compile(r"^backup-(.+)-(\d{1,15})$")
_COMMIT_HASH_RE = re.compile(r"^[0-9a-fA-F]{40}$")
_SLUG_INVALID_RE = re.compile(r"[^a-z0-9_.]+")


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def millis_to_datetime(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def is_commit_hash(value: str | None) -> bool:
    """True for a full 40-character hexadecimal commit sha."""
    return bool(value) and bool(_COMMIT_HASH_RE.match(value))


class BranchKind(str, Enum):
    TASK = "task"
    ISSUE = "issue"


@dataclass(frozen=True)
class TaskBranchName:
    """
    Structured form of a task or issue branch name.

    Example:
        ```python
        name = TaskBranchName.parse("task-1718000000000")
        name.created_at      # datetime(2024, 6, 10, ...)
        str(TaskBranchName.for_issue(12))  # "issue-12"
        ```
    """

    kind: BranchKind
    created_ms: int | None = None
    issue_iid: int | None = None

    def __post_init__(self) -> None:
        if self.kind is BranchKind.TASK:
            if self.created_ms is None or self.created_ms <= 0 or self.issue_iid is not None:
                raise InvalidBranchNameError(
                    f"{TASK_PREFIX}{self.created_ms}",
                    "task branches need a positive creation timestamp",
                )
        elif self.issue_iid is None or self.issue_iid <= 0 or self.created_ms is not None:
            raise InvalidBranchNameError(
                f"{ISSUE_PREFIX}{self.issue_iid}", "issue branches need a positive issue number"
            )

    @classmethod
    def new_task(cls, created_ms: int | None = None) -> "TaskBranchName":
        """Allocate a task branch name for the current (or given) time."""
        return cls(BranchKind.TASK, created_ms=created_ms if created_ms is not None else now_millis())

    @classmethod
    def for_issue(cls, issue_iid: int) -> "TaskBranchName":
        return cls(BranchKind.ISSUE, issue_iid=issue_iid)

    @classmethod
    def parse(cls, name: str) -> "TaskBranchName":
        """
        Parse a branch name.

        Raises:
            InvalidBranchNameError: If the name is neither ``task-<ms>`` nor ``issue-<n>``
        """
        match = _TASK_RE.match(name)
        if match:
            return cls(BranchKind.TASK, created_ms=int(match.group(1)))
        match = _ISSUE_RE.match(name)
        if match:
            return cls(BranchKind.ISSUE, issue_iid=int(match.group(1)))
        raise InvalidBranchNameError(name, "expected 'task-<epochMillis>' or 'issue-<number>'")

    @classmethod
    def try_parse(cls, name: str) -> "TaskBranchName | None":
        try:
            return cls.parse(name)
        except InvalidBranchNameError:
            return None

    @property
    def created_at(self) -> datetime | None:
        if self.created_ms is None:
            return None
        return millis_to_datetime(self.created_ms)

    @property
    def is_task(self) -> bool:
        return self.kind is BranchKind.TASK

    def format(self) -> str:
        if self.kind is BranchKind.TASK:
            return f"{TASK_PREFIX}{self.created_ms}"
        return f"{ISSUE_PREFIX}{self.issue_iid}"

    def __str__(self) -> str:
        return self.format()


def is_task_branch(name: str) -> bool:
    """True for names following the task/issue convention."""
    return TaskBranchName.try_parse(name) is not None


def backup_branch_name(branch: str, created_ms: int | None = None) -> str:
    return f"{BACKUP_PREFIX}{branch}-{created_ms if created_ms is not None else now_millis()}"


def parse_backup_branch_name(name: str) -> tuple[str, int] | None:
    """Split ``backup-<branch>-<ms>`` into (branch, ms); None for other names."""
    match = _BACKUP_RE.match(name)
    if not match:
        return None
    return match.group(1), int(match.group(2))


def removed_branch_name(branch: str) -> str:
    return f"{REMOVED_PREFIX}{branch}"


def temp_branch_name(created_ms: int | None = None) -> str:
    return f"{TEMP_PREFIX}{created_ms if created_ms is not None else now_millis()}"


def project_slug(name: str) -> str:
    """
    The path GitLab gives a project created as ``name``.

    Lower-cased; runs of characters other than letters, digits, ``_`` and
    ``.`` become a single ``-``.
    """
    return _SLUG_INVALID_RE.sub("-", name.lower()).strip("-")
