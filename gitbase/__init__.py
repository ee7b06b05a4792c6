"""gitbase - task-branch orchestration over the GitLab REST API."""

from gitbase.cache import TimedCache
from gitbase.client import GitLabClient
from gitbase.config import OrchestratorConfig
from gitbase.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BackupRestoreError,
    CommitError,
    ConfigurationError,
    ConflictError,
    GitbaseError,
    InvalidBranchNameError,
    MergeBlockedError,
    MissingResourceError,
    NotFoundError,
    OperationError,
    RateLimitedError,
    ServerError,
    TokenLimitError,
    TokenRevocationError,
    UnprocessableEntityError,
    ValidationError,
)
from gitbase.logging import configure_logging, get_logger
from gitbase.naming import TaskBranchName
from gitbase.orchestration import (
    AccessTokenManager,
    BranchManager,
    CommitOrchestrator,
    HistoryReader,
    IssueManager,
    MergeRequestManager,
    Provisioner,
    TaskOrchestrator,
)
from gitbase.transport import AsyncHTTPTransport, RetryConfig

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Client
    "GitLabClient",
    # Orchestration
    "TaskOrchestrator",
    "Provisioner",
    "BranchManager",
    "CommitOrchestrator",
    "MergeRequestManager",
    "AccessTokenManager",
    "HistoryReader",
    "IssueManager",
    "OrchestratorConfig",
    "TaskBranchName",
    "TimedCache",
    # Exceptions
    "GitbaseError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "MissingResourceError",
    "ConflictError",
    "RateLimitedError",
    "ValidationError",
    "UnprocessableEntityError",
    "ServerError",
    "ConfigurationError",
    "InvalidBranchNameError",
    "OperationError",
    "CommitError",
    "MergeBlockedError",
    "BackupRestoreError",
    "TokenLimitError",
    "TokenRevocationError",
    # Transport
    "AsyncHTTPTransport",
    "RetryConfig",
    # Logging
    "configure_logging",
    "get_logger",
]
