"""Tags resource client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from gitbase.clients._parsing import drop_none, project_path
from gitbase.types.tags import Tag

if TYPE_CHECKING:
    from gitbase.transport import AsyncHTTPTransport


def parse_tag(data: dict[str, Any]) -> Tag:
    commit = data.get("commit") or {}
    return Tag(
        name=data["name"],
        target=data.get("target", commit.get("id", "")),
        message=data.get("message"),
        commit_id=commit.get("id"),
    )


class TagsClient:
    """Client for repository tag operations."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        self.transport = transport

    async def list(self, project: int | str, per_page: int = 100) -> list[Tag]:
        """List tags, newest first."""
        response = await self.transport.request(
            "GET", f"{project_path(project)}/repository/tags", params={"per_page": per_page}
        )
        return [parse_tag(t) for t in response or []]

    async def create(
        self,
        project: int | str,
        tag_name: str,
        ref: str,
        message: str | None = None,
    ) -> Tag:
        """Create a (lightweight or annotated) tag at ``ref``."""
        response = await self.transport.request(
            "POST",
            f"{project_path(project)}/repository/tags",
            body=drop_none({"tag_name": tag_name, "ref": ref, "message": message}),
        )
        return parse_tag(response)
