"""Task-branch orchestration on top of the GitLab resource clients."""

from gitbase.orchestration._errors import InputError
from gitbase.orchestration.branches import BranchManager
from gitbase.orchestration.commits import (
    BatchCommitStrategy,
    CommitOrchestrator,
    CommitRequest,
    PerFileCommitStrategy,
    files_from_file_map,
)
from gitbase.orchestration.history import HistoryReader
from gitbase.orchestration.issues import IssueManager
from gitbase.orchestration.merge_requests import MergeRequestManager
from gitbase.orchestration.provisioning import Provisioner
from gitbase.orchestration.service import TaskOrchestrator
from gitbase.orchestration.tokens import (
    AccessTokenManager,
    ApiRevokeStrategy,
    RawDeleteRevokeStrategy,
    RevokeRequest,
)

__all__ = [
    "AccessTokenManager",
    "ApiRevokeStrategy",
    "BatchCommitStrategy",
    "BranchManager",
    "CommitOrchestrator",
    "CommitRequest",
    "HistoryReader",
    "InputError",
    "IssueManager",
    "MergeRequestManager",
    "PerFileCommitStrategy",
    "Provisioner",
    "RawDeleteRevokeStrategy",
    "RevokeRequest",
    "TaskOrchestrator",
    "files_from_file_map",
]
