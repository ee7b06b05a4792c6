"""Merge request data models."""

from dataclasses import dataclass

MERGEABLE = "can_be_merged"
CANNOT_BE_MERGED = "cannot_be_merged"


@dataclass
class MergeRequest:
    """Merge request information."""

    iid: int
    source_branch: str
    target_branch: str
    title: str
    description: str | None
    state: str  # "opened", "closed", "merged", "locked"
    merge_status: str | None  # "unchecked", "checking", "can_be_merged", ...
    sha: str | None = None

    @property
    def is_mergeable(self) -> bool:
        return self.merge_status == MERGEABLE


@dataclass
class MergeResult:
    """Result of merging a task branch."""

    merged_branch: str
    target_branch: str
    merge_request_iid: int

    @property
    def message(self) -> str:
        return f"Successfully merged {self.merged_branch} into {self.target_branch}"
