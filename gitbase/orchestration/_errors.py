"""Wrapping of remote failures with the operation they belonged to."""

from collections.abc import Iterator
from contextlib import contextmanager

from gitbase.exceptions import (
    BackupRestoreError,
    CommitError,
    InvalidBranchNameError,
    MergeBlockedError,
    MissingResourceError,
    OperationError,
    TokenLimitError,
    TokenRevocationError,
    ValidationError,
)
from gitbase.logging import get_logger

logger = get_logger("orchestration")

# Raised deliberately by the orchestration layer; never re-wrapped.
_DOMAIN_ERRORS = (
    OperationError,
    BackupRestoreError,
    CommitError,
    InvalidBranchNameError,
    MergeBlockedError,
    MissingResourceError,
    TokenLimitError,
    TokenRevocationError,
)


class InputError(ValidationError):
    """Raised for invalid arguments before any remote call is made."""

    def __init__(self, message: str) -> None:
        super().__init__("INVALID_INPUT", message)


@contextmanager
def wrap_errors(operation: str, resource: str) -> Iterator[None]:
    """
    Re-raise failures inside the block as ``OperationError``.

    Example:
        ```python
        with wrap_errors("create project", name):
            project = await client.projects.create(name)
        ```
    """
    try:
        yield
    except (*_DOMAIN_ERRORS, InputError):
        raise
    except Exception as exc:
        logger.error("Failed to %s (%s): %s", operation, resource, exc)
        raise OperationError(operation, resource, exc) from exc
