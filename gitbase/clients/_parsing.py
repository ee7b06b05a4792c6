"""Helpers shared by the resource clients for turning GitLab JSON into models."""

from datetime import date, datetime
from typing import Any

from gitbase.transport import encode_path


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp as returned by GitLab ("...Z" or "+00:00")."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(value[:10])


def project_path(project: int | str) -> str:
    """Build the /projects/:id prefix for a numeric id or a namespaced path."""
    return f"/projects/{encode_path(project)}"


def drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}
