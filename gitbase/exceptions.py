"""Gitbase exception classes."""

from typing import Any


class GitbaseError(Exception):
    """Base exception for all gitbase errors."""

    def __init__(
        self,
        code: str,
        message: str,
        request_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.request_id = request_id
        self.status_code = status_code
        super().__init__(f"[{code}] {message}")


class ConfigurationError(GitbaseError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class AuthenticationError(GitbaseError):
    """Raised when the access token is rejected (401)."""

    pass


class AuthorizationError(GitbaseError):
    """Raised when access is denied (403)."""

    pass


class NotFoundError(GitbaseError):
    """Raised when a project, branch, commit or other resource is missing."""

    pass


class ConflictError(GitbaseError):
    """Raised on conflicts (409)."""

    pass


class ValidationError(GitbaseError):
    """Raised on validation errors (400 and other client errors)."""

    pass


class UnprocessableEntityError(ValidationError):
    """Raised on 422 responses, e.g. a merge request that is not ready yet."""

    pass


class RateLimitedError(GitbaseError):
    """Raised when rate limited."""

    def __init__(
        self,
        code: str,
        message: str,
        retry_after: int,
        request_id: str | None = None,
        status_code: int | None = 429,
    ) -> None:
        super().__init__(code, message, request_id, status_code)
        self.retry_after = retry_after


class ServerError(GitbaseError):
    """Raised on server errors (5xx) and connection failures."""

    pass


class InvalidBranchNameError(ValidationError):
    """Raised when a branch name does not follow the task/issue convention."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__("INVALID_BRANCH_NAME", f"Invalid branch name '{name}': {reason}")
        self.name = name


class OperationError(GitbaseError):
    """
    A remote failure wrapped with the operation and resource it belonged to.

    The original exception is kept on ``cause`` (and ``__cause__``) so callers
    can still branch on the underlying error class.
    """

    def __init__(
        self,
        operation: str,
        resource: str,
        cause: BaseException,
    ) -> None:
        self.operation = operation
        self.resource = resource
        self.cause = cause
        status_code = getattr(cause, "status_code", None)
        detail = cause.message if isinstance(cause, GitbaseError) else str(cause)
        super().__init__(
            "OPERATION_FAILED",
            f"Failed to {operation} ({resource}): {detail}",
            getattr(cause, "request_id", None),
            status_code,
        )


class CommitError(GitbaseError):
    """Raised when no part of a commit could be written."""

    def __init__(self, message: str, failed_paths: list[str] | None = None) -> None:
        super().__init__("COMMIT_FAILED", message)
        self.failed_paths = failed_paths or []


class MergeBlockedError(ConflictError):
    """Raised when the host reports that a merge request cannot be merged."""

    def __init__(self, merge_request_iid: int, merge_status: str | None) -> None:
        super().__init__(
            "MERGE_BLOCKED",
            f"Branch cannot be merged automatically (status: {merge_status})",
        )
        self.merge_request_iid = merge_request_iid
        self.merge_status = merge_status


class BackupRestoreError(GitbaseError):
    """
    Raised when a branch rewrite failed and the branch could not be restored.

    The backup branch still exists and can be used for manual recovery.
    """

    def __init__(self, branch: str, backup_branch: str, cause: BaseException) -> None:
        super().__init__(
            "BACKUP_RESTORE_FAILED",
            f"Failed to reset branch '{branch}' and could not restore it from backup. "
            f"Backup branch '{backup_branch}' is available for manual recovery.",
        )
        self.branch = branch
        self.backup_branch = backup_branch
        self.cause = cause


class TokenLimitError(ValidationError):
    """Raised when a project already holds the maximum number of active tokens."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            "TOKEN_LIMIT_EXCEEDED",
            f"Token limit reached: maximum {limit} active tokens allowed per project",
        )
        self.limit = limit


class TokenRevocationError(GitbaseError):
    """Raised when at least one token of a bulk revoke could not be revoked."""

    def __init__(self, failed_token_ids: list[int], errors: dict[int, Any]) -> None:
        ids = ", ".join(str(token_id) for token_id in failed_token_ids)
        super().__init__("TOKEN_REVOKE_FAILED", f"Failed to revoke token(s): {ids}")
        self.failed_token_ids = failed_token_ids
        self.errors = errors


class MissingResourceError(NotFoundError):
    """Raised by the orchestration layer when a required project, branch or commit is absent."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__("NOT_FOUND", f"{kind} '{name}' does not exist", status_code=404)
        self.kind = kind
        self.name = name
