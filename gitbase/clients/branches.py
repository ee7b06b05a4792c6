"""Branches and protected branches resource clients."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from gitbase.clients._parsing import project_path
from gitbase.exceptions import NotFoundError
from gitbase.transport import encode_path
from gitbase.types.branches import Branch, ProtectedBranch

if TYPE_CHECKING:
    from gitbase.transport import AsyncHTTPTransport


def parse_branch(data: dict[str, Any]) -> Branch:
    """Parse branch data from API response."""
    commit = data.get("commit") or {}
    return Branch(
        name=data["name"],
        commit_id=commit.get("id"),
        protected=bool(data.get("protected", False)),
        merged=bool(data.get("merged", False)),
    )


class BranchesClient:
    """Client for repository branch operations."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the branches client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    def _path(self, project: int | str, branch: str | None = None) -> str:
        path = f"{project_path(project)}/repository/branches"
        if branch is not None:
            path += f"/{encode_path(branch)}"
        return path

    async def list(
        self,
        project: int | str,
        search: str | None = None,
        per_page: int = 100,
    ) -> list[Branch]:
        """
        List branches, optionally filtered by a name fragment.

        Args:
            project: Project id or path
            search: Optional name fragment (e.g., "task-")
            per_page: Page size
        """
        params: dict[str, Any] = {"per_page": per_page}
        if search:
            params["search"] = search
        response = await self.transport.request("GET", self._path(project), params=params)
        return [parse_branch(b) for b in response or []]

    async def show(self, project: int | str, branch: str) -> Branch:
        """
        Get a single branch.

        Raises:
            NotFoundError: If the branch does not exist
        """
        response = await self.transport.request("GET", self._path(project, branch))
        return parse_branch(response)

    async def exists(self, project: int | str, branch: str) -> bool:
        """Return True if the branch exists."""
        try:
            await self.show(project, branch)
        except NotFoundError:
            return False
        return True

    async def create(self, project: int | str, branch: str, ref: str) -> Branch:
        """
        Create a branch pointing at ``ref`` (branch name, tag or commit sha).
        """
        response = await self.transport.request(
            "POST", self._path(project), body={"branch": branch, "ref": ref}
        )
        return parse_branch(response)

    async def delete(self, project: int | str, branch: str) -> None:
        """Delete a branch."""
        await self.transport.request("DELETE", self._path(project, branch))


class ProtectedBranchesClient:
    """Client for protected branch rules."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        self.transport = transport

    async def list(self, project: int | str) -> list[ProtectedBranch]:
        """List protected branch rules of a project."""
        response = await self.transport.request(
            "GET", f"{project_path(project)}/protected_branches", params={"per_page": 100}
        )
        return [ProtectedBranch(name=pb["name"]) for pb in response or []]
