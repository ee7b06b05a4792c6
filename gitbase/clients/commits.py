"""Commits resource client."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from gitbase.clients._parsing import drop_none, parse_datetime, project_path
from gitbase.transport import encode_path
from gitbase.types.commits import Commit, CommitAction, CommitStats, Diff

if TYPE_CHECKING:
    from gitbase.transport import AsyncHTTPTransport


def parse_commit(data: dict[str, Any]) -> Commit:
    """Parse commit data from API response."""
    stats_data = data.get("stats")
    stats = None
    if stats_data:
        stats = CommitStats(
            additions=stats_data.get("additions", 0),
            deletions=stats_data.get("deletions", 0),
            total=stats_data.get("total", 0),
        )
    message = data.get("message") or data.get("title") or ""
    return Commit(
        id=data["id"],
        short_id=data.get("short_id") or data["id"][:8],
        title=data.get("title") or message.split("\n", 1)[0],
        message=message,
        author_name=data.get("author_name"),
        author_email=data.get("author_email"),
        created_at=parse_datetime(data.get("created_at")),
        committed_date=parse_datetime(data.get("committed_date")),
        parent_ids=list(data.get("parent_ids") or []),
        stats=stats,
    )


def parse_diff(data: dict[str, Any]) -> Diff:
    """Parse a diff entry from API response."""
    return Diff(
        old_path=data["old_path"],
        new_path=data["new_path"],
        a_mode=data.get("a_mode"),
        b_mode=data.get("b_mode"),
        diff=data.get("diff", ""),
        new_file=bool(data.get("new_file", False)),
        renamed_file=bool(data.get("renamed_file", False)),
        deleted_file=bool(data.get("deleted_file", False)),
    )


def _isoformat(value: datetime | str | None) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return value.isoformat()


class CommitsClient:
    """Client for commit operations."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the commits client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    def _path(self, project: int | str) -> str:
        return f"{project_path(project)}/repository/commits"

    async def list(
        self,
        project: int | str,
        ref_name: str | None = None,
        since: datetime | str | None = None,
        until: datetime | str | None = None,
        page: int = 1,
        per_page: int = 20,
        order: str | None = None,
    ) -> tuple[list[Commit], int]:
        """
        List commits of a ref.

        Args:
            project: Project id or path
            ref_name: Branch, tag or sha to list from
            since: Only commits after this time
            until: Only commits before this time
            page: Page number (1-indexed)
            per_page: Page size
            order: "default" or "topo"

        Returns:
            Tuple of (commits newest first, total count from X-Total)
        """
        params = drop_none({
            "ref_name": ref_name,
            "since": _isoformat(since),
            "until": _isoformat(until),
            "page": page,
            "per_page": per_page,
            "order": order,
        })
        response, total = await self.transport.request_page(
            "GET", self._path(project), params=params
        )
        return [parse_commit(c) for c in response or []], total

    async def show(self, project: int | str, sha: str) -> Commit:
        """
        Get a single commit.

        Raises:
            NotFoundError: If the commit does not exist
        """
        response = await self.transport.request(
            "GET", f"{self._path(project)}/{encode_path(sha)}"
        )
        return parse_commit(response)

    async def create(
        self,
        project: int | str,
        branch: str,
        message: str,
        actions: list[CommitAction],
    ) -> Commit:
        """
        Create one commit containing several file actions.

        Args:
            project: Project id or path
            branch: Target branch
            message: Commit message
            actions: create/update/delete actions, one per path

        Returns:
            The created Commit
        """
        response = await self.transport.request(
            "POST",
            self._path(project),
            body={
                "branch": branch,
                "commit_message": message,
                "actions": [action.to_dict() for action in actions],
            },
        )
        return parse_commit(response)

    async def diff(self, project: int | str, sha: str) -> list[Diff]:
        """Get the diff of a commit."""
        response = await self.transport.request(
            "GET", f"{self._path(project)}/{encode_path(sha)}/diff"
        )
        return [parse_diff(d) for d in response or []]
