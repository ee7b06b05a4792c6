"""Users resource client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from gitbase.types.users import User

if TYPE_CHECKING:
    from gitbase.transport import AsyncHTTPTransport


def parse_user(data: dict[str, Any]) -> User:
    """Parse user data from API response."""
    return User(
        id=data["id"],
        username=data["username"],
        email=data.get("email"),
        name=data.get("name") or data["username"],
        namespace_id=data.get("namespace_id"),
        is_admin=bool(data.get("is_admin", False)),
    )


class UsersClient:
    """Client for user operations (requires an admin token for create)."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the users client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    async def search(self, search: str, per_page: int = 100) -> list[User]:
        """
        Search users by email or username fragment.

        Args:
            search: Email address or username fragment
            per_page: Page size

        Returns:
            List of matching users (not necessarily exact matches)
        """
        response = await self.transport.request(
            "GET", "/users", params={"search": search, "per_page": per_page}
        )
        return [parse_user(user) for user in response or []]

    async def create(
        self,
        email: str,
        username: str,
        password: str,
        name: str | None = None,
        skip_confirmation: bool = True,
    ) -> User:
        """
        Create a user.

        Args:
            email: Email address
            username: Unique username
            password: Initial password
            name: Display name (default: username)
            skip_confirmation: Activate the account immediately

        Returns:
            The created User
        """
        response = await self.transport.request(
            "POST",
            "/users",
            body={
                "email": email,
                "username": username,
                "password": password,
                "name": name or username,
                "skip_confirmation": skip_confirmation,
            },
        )
        return parse_user(response)

    async def current(self) -> User:
        """Get the user owning the access token."""
        response = await self.transport.request("GET", "/user")
        return parse_user(response)
