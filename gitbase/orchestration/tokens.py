"""
Project access token lifecycle.

Tokens are created on demand with a fixed lifetime. A token is *active* when
it has not been revoked, expires strictly in the future and carries both
``read_repository`` and ``write_repository``.
"""

import secrets
import string
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING

from gitbase.config import OrchestratorConfig
from gitbase.exceptions import GitbaseError, TokenLimitError, TokenRevocationError
from gitbase.fanout import gather_outcomes
from gitbase.logging import get_logger
from gitbase.orchestration._errors import wrap_errors
from gitbase.strategies import FallbackChain, FallbackStrategy
from gitbase.types.tokens import AccessToken, TokenStatus

if TYPE_CHECKING:
    from gitbase.client import GitLabClient

logger = get_logger("orchestration.tokens")

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _newest_first(tokens: list[AccessToken]) -> list[AccessToken]:
    oldest = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(tokens, key=lambda t: (t.created_at or oldest, t.id), reverse=True)


@dataclass
class RevokeRequest:
    project: int | str
    token_id: int


class ApiRevokeStrategy(FallbackStrategy[RevokeRequest, None]):
    """Revoke through the access tokens endpoint with retries."""

    name = "api revoke"
    fallback_on = (GitbaseError,)

    def __init__(self, client: "GitLabClient") -> None:
        self.client = client

    async def run(self, request: RevokeRequest) -> None:
        await self.client.access_tokens.revoke(request.project, request.token_id)


class RawDeleteRevokeStrategy(FallbackStrategy[RevokeRequest, None]):
    """A single plain DELETE; 404 counts as already revoked."""

    name = "raw delete revoke"

    def __init__(self, client: "GitLabClient") -> None:
        self.client = client

    async def run(self, request: RevokeRequest) -> None:
        transport = self.client.transport
        response = await transport.raw_request(
            "DELETE", self.client.access_tokens.token_path(request.project, request.token_id)
        )
        if response.status_code in (200, 204, 404):
            return
        transport.raise_for_status(response)


class AccessTokenManager:
    """Creates, inspects and revokes project access tokens."""

    def __init__(
        self,
        client: "GitLabClient",
        config: OrchestratorConfig | None = None,
        today: Callable[[], date] = _utc_today,
    ) -> None:
        self.client = client
        self.config = config or OrchestratorConfig()
        self._today = today
        self._revoke_chain: FallbackChain[RevokeRequest, None] = FallbackChain(
            [ApiRevokeStrategy(client), RawDeleteRevokeStrategy(client)]
        )

    async def create_project_access_token(
        self,
        project: int | str,
        project_path: str | None = None,
        enforce_limit: bool = True,
    ) -> AccessToken:
        """
        Create a repository token valid for ``token_lifetime_days``.

        Args:
            project: Project id or path
            project_path: Namespaced path used for the token name (looked up if omitted)
            enforce_limit: Refuse when ``max_active_tokens`` are already active

        Returns:
            AccessToken whose ``token`` holds the secret

        Raises:
            TokenLimitError: If the project already has the maximum of active tokens
            OperationError: On remote failures
        """
        with wrap_errors("create project access token", str(project)):
            limit = self.config.max_active_tokens
            if enforce_limit and limit:
                active = await self.list_active_tokens(project)
                if len(active) >= limit:
                    raise TokenLimitError(limit)

            name = f"{await self._name_prefix(project, project_path)}-{_random_suffix()}"
            token = await self.client.access_tokens.create(
                project,
                name=name,
                scopes=list(self.config.token_scopes),
                expires_at=self._today() + timedelta(days=self.config.token_lifetime_days),
                access_level=self.config.token_access_level,
            )
        logger.info("Created access token %s (%s) for %s", token.id, token.name, project)
        return token

    async def _name_prefix(self, project: int | str, project_path: str | None) -> str:
        if project_path is None:
            if isinstance(project, str) and not project.isdigit():
                project_path = project
            else:
                project_path = (await self.client.projects.show(project)).path_with_namespace
        prefix = project_path.rstrip("/").rsplit("/", 1)[-1]
        return prefix or f"project-{project}"

    async def list_tokens(self, project: int | str) -> list[AccessToken]:
        with wrap_errors("list access tokens", str(project)):
            return await self.client.access_tokens.list(project)

    async def list_active_tokens(self, project: int | str) -> list[AccessToken]:
        """Active tokens of a project, newest first."""
        today = self._today()
        tokens = await self.list_tokens(project)
        return _newest_first([t for t in tokens if t.is_active(today)])

    async def get_active_token(self, project: int | str) -> TokenStatus:
        """Report the newest active token and its whole days until expiry."""
        active = await self.list_active_tokens(project)
        if not active:
            return TokenStatus(has_active_token=False)
        token = active[0]
        return TokenStatus(
            has_active_token=True,
            token=token,
            days_remaining=token.days_remaining(self._today()),
        )

    async def revoke_token(self, project: int | str, token_id: int) -> None:
        """
        Revoke one token.

        Falls back to a single raw DELETE when the API revoke fails.
        """
        with wrap_errors("revoke access token", f"{project}:{token_id}"):
            await self._revoke_chain.run(RevokeRequest(project=project, token_id=token_id))
        logger.info("Revoked access token %s of %s", token_id, project)

    async def revoke_all_active_tokens(self, project: int | str) -> list[int]:
        """
        Revoke every active token concurrently.

        Returns:
            Ids of the revoked tokens

        Raises:
            TokenRevocationError: If any token could not be revoked (the others
                are still revoked)
        """
        active = await self.list_active_tokens(project)
        outcomes = await gather_outcomes({
            token.id: self.revoke_token(project, token.id) for token in active
        })
        if outcomes.failures:
            failed = sorted(outcomes.failures)
            for token_id in failed:
                logger.error("Failed to revoke token %s of %s", token_id, project)
            raise TokenRevocationError(failed, dict(outcomes.failures))
        return sorted(outcomes.successes)

    async def rotate_project_access_token(
        self,
        project: int | str,
        project_path: str | None = None,
    ) -> AccessToken:
        """
        Create a new token and revoke every older active one.

        The new token exists before any old one is revoked.
        """
        previous = await self.list_active_tokens(project)
        token = await self.create_project_access_token(project, project_path, enforce_limit=False)
        outcomes = await gather_outcomes({
            old.id: self.revoke_token(project, old.id) for old in previous if old.id != token.id
        })
        if outcomes.failures:
            raise TokenRevocationError(sorted(outcomes.failures), dict(outcomes.failures))
        return token


def _random_suffix(length: int = 6) -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))
