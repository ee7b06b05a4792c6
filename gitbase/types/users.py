"""User data models."""

from dataclasses import dataclass


@dataclass
class User:
    """Hosting-service user."""

    id: int
    username: str
    email: str | None
    name: str
    namespace_id: int | None
    is_admin: bool = False
