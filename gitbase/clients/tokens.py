"""Project access tokens resource client."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

from gitbase.clients._parsing import parse_date, parse_datetime, project_path
from gitbase.types.tokens import AccessToken

if TYPE_CHECKING:
    from gitbase.transport import AsyncHTTPTransport


def parse_access_token(data: dict[str, Any]) -> AccessToken:
    """Parse project access token data from API response."""
    return AccessToken(
        id=data["id"],
        name=data["name"],
        scopes=list(data.get("scopes") or []),
        expires_at=parse_date(data.get("expires_at")),
        revoked=bool(data.get("revoked", False)),
        created_at=parse_datetime(data.get("created_at")),
        access_level=data.get("access_level"),
        active=bool(data.get("active", True)),
        token=data.get("token"),
    )


class AccessTokensClient:
    """Client for project access token operations."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the access tokens client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    def token_path(self, project: int | str, token_id: int | None = None) -> str:
        path = f"{project_path(project)}/access_tokens"
        if token_id is not None:
            path += f"/{token_id}"
        return path

    async def list(self, project: int | str) -> list[AccessToken]:
        """List the project's access tokens (including expired and revoked)."""
        response = await self.transport.request(
            "GET", self.token_path(project), params={"per_page": 100}
        )
        return [parse_access_token(t) for t in response or []]

    async def create(
        self,
        project: int | str,
        name: str,
        scopes: list[str],
        expires_at: date,
        access_level: int = 30,
    ) -> AccessToken:
        """
        Create a project access token.

        Returns:
            AccessToken whose ``token`` field holds the secret (only returned once)
        """
        response = await self.transport.request(
            "POST",
            self.token_path(project),
            body={
                "name": name,
                "scopes": scopes,
                "expires_at": expires_at.isoformat(),
                "access_level": access_level,
            },
        )
        return parse_access_token(response)

    async def revoke(self, project: int | str, token_id: int) -> None:
        """Revoke a project access token."""
        await self.transport.request("DELETE", self.token_path(project, token_id))
