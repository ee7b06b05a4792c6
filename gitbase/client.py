"""
Gitbase async client.

Provides the async interface for the GitLab REST API resources used by the
task-branch orchestration layer.
"""

import os
from typing import Any

import httpx

from gitbase.clients import (
    AccessTokensClient,
    BranchesClient,
    CommitsClient,
    IssuesClient,
    MergeRequestsClient,
    ProjectsClient,
    ProtectedBranchesClient,
    RepositoryFilesClient,
    TagsClient,
    UsersClient,
)
from gitbase.exceptions import ConfigurationError
from gitbase.transport import AsyncHTTPTransport, RetryConfig


class GitLabClient:
    """
    Async client for the GitLab REST API.

    Aggregates all resource clients and handles authentication.

    Example:
        ```python
        import asyncio
        from gitbase import GitLabClient

        async def main():
            async with GitLabClient(
                base_url="https://gitlab.example.com",
                token="glpat-...",
            ) as client:
                branch = await client.branches.show("alice/game", "develop")

        asyncio.run(main())
        ```
    """

    DEFAULT_BASE_URL = "https://gitlab.com"
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the async GitLab client.

        Args:
            token: Access token sent as PRIVATE-TOKEN (admin scope for user creation)
            base_url: Base URL of the GitLab instance (default: https://gitlab.com)
            timeout: Request timeout in seconds (default: 30.0)
            retry_config: Configuration for retry behavior (optional)
            http_transport: Optional httpx transport, mainly for tests
        """
        if not token:
            raise ConfigurationError("A GitLab access token is required")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self._transport = AsyncHTTPTransport(
            base_url=base_url,
            token=token,
            timeout=timeout,
            retry_config=retry_config,
            http_transport=http_transport,
        )

        self.users = UsersClient(self._transport)
        self.projects = ProjectsClient(self._transport)
        self.branches = BranchesClient(self._transport)
        self.protected_branches = ProtectedBranchesClient(self._transport)
        self.commits = CommitsClient(self._transport)
        self.files = RepositoryFilesClient(self._transport)
        self.merge_requests = MergeRequestsClient(self._transport)
        self.access_tokens = AccessTokensClient(self._transport)
        self.tags = TagsClient(self._transport)
        self.issues = IssuesClient(self._transport)

    @classmethod
    def from_env(
        cls,
        retry_config: RetryConfig | None = None,
    ) -> "GitLabClient":
        """
        Create a client from environment variables.

        Environment variables:
            GITLAB_TOKEN: Access token (required)
            GITLAB_URL: Base URL of the instance (optional, default: https://gitlab.com)
            GITLAB_TIMEOUT: Request timeout in seconds (optional, default: 30)

        Raises:
            ConfigurationError: If required environment variables are missing or invalid
        """
        token = os.environ.get("GITLAB_TOKEN")
        base_url = os.environ.get("GITLAB_URL", cls.DEFAULT_BASE_URL)
        timeout_str = os.environ.get("GITLAB_TIMEOUT")

        if not token:
            raise ConfigurationError("GITLAB_TOKEN environment variable not set")

        timeout = cls.DEFAULT_TIMEOUT
        if timeout_str:
            try:
                timeout = float(timeout_str)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid GITLAB_TIMEOUT: {timeout_str}. Must be a number of seconds"
                ) from None

        return cls(
            token=token,
            base_url=base_url,
            timeout=timeout,
            retry_config=retry_config,
        )

    @property
    def transport(self) -> AsyncHTTPTransport:
        """Get the underlying async HTTP transport (for advanced use cases)."""
        return self._transport

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._transport.close()

    async def __aenter__(self) -> "GitLabClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit - closes the client."""
        await self.close()
