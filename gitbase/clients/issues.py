"""Issues resource client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from gitbase.clients._parsing import drop_none, parse_datetime, project_path
from gitbase.types.issues import Issue

if TYPE_CHECKING:
    from gitbase.transport import AsyncHTTPTransport


def parse_issue(data: dict[str, Any]) -> Issue:
    """Parse issue data from API response."""
    author = data.get("author") or {}
    return Issue(
        iid=data["iid"],
        title=data.get("title", ""),
        description=data.get("description"),
        state=data.get("state", "opened"),
        labels=list(data.get("labels") or []),
        author_username=author.get("username"),
        web_url=data.get("web_url"),
        created_at=parse_datetime(data.get("created_at")),
        updated_at=parse_datetime(data.get("updated_at")),
    )


class IssuesClient:
    """Client for project issue operations."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        self.transport = transport

    def _path(self, project: int | str, iid: int | None = None) -> str:
        path = f"{project_path(project)}/issues"
        if iid is not None:
            path += f"/{iid}"
        return path

    async def list(
        self,
        project: int | str,
        state: str | None = None,
        labels: list[str] | None = None,
        order_by: str | None = None,
        sort: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[Issue], int]:
        """
        List one page of issues.

        Args:
            project: Project id or path
            state: Optional filter ("opened", "closed", "all")
            labels: Only issues carrying every one of these labels
            order_by: Sort field (e.g., "created_at")
            sort: "asc" or "desc"
            page: Page number (1-indexed)
            per_page: Page size

        Returns:
            Tuple of (issues, total count from X-Total)
        """
        params = drop_none({
            "state": state,
            "labels": ",".join(labels) if labels else None,
            "order_by": order_by,
            "sort": sort,
            "page": page,
            "per_page": per_page,
        })
        response, total = await self.transport.request_page("GET", self._path(project), params=params)
        return [parse_issue(issue) for issue in response or []], total

    async def show(self, project: int | str, iid: int) -> Issue:
        """Get a single issue."""
        response = await self.transport.request("GET", self._path(project, iid))
        return parse_issue(response)

    async def edit(
        self,
        project: int | str,
        iid: int,
        labels: list[str] | None = None,
        state_event: str | None = None,
    ) -> Issue:
        """
        Update an issue.

        ``labels`` replaces the whole label set; ``state_event`` is "close"
        or "reopen".
        """
        body = drop_none({
            "labels": ",".join(labels) if labels is not None else None,
            "state_event": state_event,
        })
        response = await self.transport.request("PUT", self._path(project, iid), body=body)
        return parse_issue(response)
