"""gitbase testing utilities.

Provides an in-memory GitLab and fixtures for testing code built on gitbase.
"""

from gitbase.testing.fixtures import (
    create_mock_access_token,
    create_mock_commit,
    create_mock_merge_request,
    create_mock_project,
    create_mock_user,
)
from gitbase.testing.mock import InMemoryGitLab, MockCall, MockFailure

__all__ = [
    # In-memory service
    "InMemoryGitLab",
    "MockCall",
    "MockFailure",
    # Helper functions
    "create_mock_user",
    "create_mock_project",
    "create_mock_commit",
    "create_mock_merge_request",
    "create_mock_access_token",
]
