"""Branch-related data models."""

from dataclasses import dataclass, field

from gitbase.types.commits import Commit


@dataclass
class Branch:
    """Branch information."""

    name: str
    commit_id: str | None
    protected: bool = False
    merged: bool = False


@dataclass
class ProtectedBranch:
    """Protected branch rule."""

    name: str


@dataclass
class TaskBranch:
    """A freshly created task branch and the merge request created with it."""

    branch_name: str
    merge_request_iid: int  # 0 when the merge request could not be created


@dataclass
class BranchResetResult:
    """Result of rewriting a branch to a given commit."""

    branch: str
    reverted_to_commit: str
    backup_branch: str


@dataclass
class BranchRemovalResult:
    """Result of soft-deleting a task branch."""

    old_branch: str
    new_branch: str
    closed_merge_requests: list[int] = field(default_factory=list)
    failed_merge_requests: list[int] = field(default_factory=list)

    @property
    def message(self) -> str:
        text = f"Successfully renamed branch '{self.old_branch}' to '{self.new_branch}'"
        if self.closed_merge_requests:
            text += f" and closed {len(self.closed_merge_requests)} merge request(s)"
        return text


@dataclass
class TaskBranchStatus:
    """A task or issue branch together with its merge request state."""

    name: str
    commit_id: str | None
    protected: bool
    merge_request_iid: int | None
    merge_status: str | None
    first_commit: Commit | None = None
    last_commit: Commit | None = None
