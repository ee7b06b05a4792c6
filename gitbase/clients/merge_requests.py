"""Merge requests resource client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from gitbase.clients._parsing import drop_none, project_path
from gitbase.types.merge_requests import MergeRequest

if TYPE_CHECKING:
    from gitbase.transport import AsyncHTTPTransport


def parse_merge_request(data: dict[str, Any]) -> MergeRequest:
    """Parse merge request data from API response."""
    return MergeRequest(
        iid=data["iid"],
        source_branch=data["source_branch"],
        target_branch=data["target_branch"],
        title=data.get("title", ""),
        description=data.get("description"),
        state=data.get("state", "opened"),
        merge_status=data.get("merge_status"),
        sha=data.get("sha"),
    )


class MergeRequestsClient:
    """Client for merge request operations."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the merge requests client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    def _path(self, project: int | str, iid: int | None = None) -> str:
        path = f"{project_path(project)}/merge_requests"
        if iid is not None:
            path += f"/{iid}"
        return path

    async def list(
        self,
        project: int | str,
        state: str | None = None,
        source_branch: str | None = None,
        target_branch: str | None = None,
        per_page: int = 100,
    ) -> list[MergeRequest]:
        """
        List merge requests.

        Args:
            project: Project id or path
            state: Optional filter ("opened", "closed", "merged", "all")
            source_branch: Optional filter by source branch
            target_branch: Optional filter by target branch
            per_page: Page size
        """
        params = drop_none({
            "state": state,
            "source_branch": source_branch,
            "target_branch": target_branch,
            "per_page": per_page,
        })
        response = await self.transport.request("GET", self._path(project), params=params)
        return [parse_merge_request(mr) for mr in response or []]

    async def show(self, project: int | str, iid: int) -> MergeRequest:
        """Get a single merge request."""
        response = await self.transport.request("GET", self._path(project, iid))
        return parse_merge_request(response)

    async def create(
        self,
        project: int | str,
        source_branch: str,
        target_branch: str,
        title: str,
        description: str | None = None,
        remove_source_branch: bool = False,
        squash: bool = False,
    ) -> MergeRequest:
        """
        Create a merge request.

        Raises:
            ConflictError: If an open merge request already exists for the source branch
        """
        body = drop_none({
            "source_branch": source_branch,
            "target_branch": target_branch,
            "title": title,
            "description": description,
            "remove_source_branch": remove_source_branch,
            "squash": squash,
        })
        response = await self.transport.request("POST", self._path(project), body=body)
        return parse_merge_request(response)

    async def edit(
        self,
        project: int | str,
        iid: int,
        state_event: str | None = None,
        title: str | None = None,
        description: str | None = None,
    ) -> MergeRequest:
        """Update a merge request; ``state_event`` is "close" or "reopen"."""
        body = drop_none({
            "state_event": state_event,
            "title": title,
            "description": description,
        })
        response = await self.transport.request("PUT", self._path(project, iid), body=body)
        return parse_merge_request(response)

    async def accept(
        self,
        project: int | str,
        iid: int,
        merge_when_pipeline_succeeds: bool = False,
        should_remove_source_branch: bool = False,
    ) -> MergeRequest:
        """
        Merge a merge request.

        Raises:
            UnprocessableEntityError: If the host is not ready to merge yet (422)
        """
        response = await self.transport.request(
            "PUT",
            f"{self._path(project, iid)}/merge",
            body={
                "merge_when_pipeline_succeeds": merge_when_pipeline_succeeds,
                "should_remove_source_branch": should_remove_source_branch,
            },
        )
        return parse_merge_request(response)

    async def merge_ref(self, project: int | str, iid: int) -> dict[str, Any]:
        """Ask the host to recompute the merge ref (and with it the merge status)."""
        return await self.transport.request("GET", f"{self._path(project, iid)}/merge_ref")
