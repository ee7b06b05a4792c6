"""Gitbase type definitions.

This module exports all data model types used by the package.
"""

from gitbase.types.branches import (
    Branch,
    BranchRemovalResult,
    BranchResetResult,
    ProtectedBranch,
    TaskBranch,
    TaskBranchStatus,
)
from gitbase.types.commits import (
    Commit,
    CommitAction,
    CommitPage,
    CommitResult,
    CommitStats,
    Diff,
    FileChange,
)
from gitbase.types.issues import Issue, IssuePage
from gitbase.types.merge_requests import (
    CANNOT_BE_MERGED,
    MERGEABLE,
    MergeRequest,
    MergeResult,
)
from gitbase.types.projects import Project, ProjectPage
from gitbase.types.tags import Tag
from gitbase.types.tokens import AccessToken, TokenStatus
from gitbase.types.users import User

__all__ = [
    # Identity
    "User",
    "Project",
    "ProjectPage",
    # Branches
    "Branch",
    "ProtectedBranch",
    "TaskBranch",
    "TaskBranchStatus",
    "BranchResetResult",
    "BranchRemovalResult",
    # Commits
    "Commit",
    "CommitAction",
    "CommitPage",
    "CommitResult",
    "CommitStats",
    "Diff",
    "FileChange",
    # Merge requests
    "MergeRequest",
    "MergeResult",
    "MERGEABLE",
    "CANNOT_BE_MERGED",
    # Tokens
    "AccessToken",
    "TokenStatus",
    # Tags
    "Tag",
    # Issues
    "Issue",
    "IssuePage",
]
