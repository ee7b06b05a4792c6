"""Project access token data models."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone

REQUIRED_SCOPES = frozenset({"read_repository", "write_repository"})


@dataclass
class AccessToken:
    """Project access token."""

    id: int
    name: str
    scopes: list[str]
    expires_at: date | None
    revoked: bool
    created_at: datetime | None = None
    access_level: int | None = None
    active: bool = True
    token: str | None = field(default=None, repr=False)  # only returned on create

    def is_active(self, today: date | None = None) -> bool:
        """
        A token is active when it can read and write the repository,
        expires in the future and has not been revoked.
        """
        if self.revoked:
            return False
        if not REQUIRED_SCOPES.issubset(self.scopes):
            return False
        if self.expires_at is None:
            return False
        if today is None:
            today = datetime.now(timezone.utc).date()
        return self.expires_at > today

    def days_remaining(self, today: date | None = None) -> int:
        if self.expires_at is None:
            return 0
        if today is None:
            today = datetime.now(timezone.utc).date()
        return max((self.expires_at - today).days, 0)


@dataclass
class TokenStatus:
    """Summary of the newest active token of a project."""

    has_active_token: bool
    token: AccessToken | None = None
    days_remaining: int = 0
