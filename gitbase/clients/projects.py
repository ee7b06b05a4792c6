"""Projects resource client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from gitbase.clients._parsing import drop_none, parse_datetime, project_path
from gitbase.types.projects import Project

if TYPE_CHECKING:
    from gitbase.transport import AsyncHTTPTransport


def parse_project(data: dict[str, Any]) -> Project:
    """Parse project data from API response."""
    namespace = data.get("namespace") or {}
    return Project(
        id=data["id"],
        name=data["name"],
        path_with_namespace=data.get("path_with_namespace", data["name"]),
        default_branch=data.get("default_branch"),
        visibility=data.get("visibility", "private"),
        description=data.get("description"),
        namespace_id=namespace.get("id", data.get("namespace_id")),
        created_at=parse_datetime(data.get("created_at")),
        updated_at=parse_datetime(data.get("updated_at") or data.get("last_activity_at")),
    )


class ProjectsClient:
    """Client for project operations."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the projects client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    async def list_for_user(
        self,
        user_id: int,
        search: str | None = None,
        owned: bool | None = None,
        membership: bool | None = None,
        order_by: str | None = None,
        sort: str | None = None,
        page: int = 1,
        per_page: int = 100,
    ) -> tuple[list[Project], int]:
        """
        List projects of a user.

        Args:
            user_id: The user's id
            search: Optional name fragment
            owned: Only projects owned by the user
            membership: Only projects the user is a member of
            order_by: Sort field (e.g., "updated_at")
            sort: "asc" or "desc"
            page: Page number (1-indexed)
            per_page: Page size

        Returns:
            Tuple of (projects, total count from X-Total)
        """
        params = drop_none({
            "search": search,
            "owned": owned,
            "membership": membership,
            "order_by": order_by,
            "sort": sort,
            "page": page,
            "per_page": per_page,
        })
        response, total = await self.transport.request_page(
            "GET", f"/users/{user_id}/projects", params=params
        )
        projects = [parse_project(p) for p in response or []]
        return projects, total or len(projects)

    async def show(self, project: int | str) -> Project:
        """
        Get a project by id or namespaced path.

        Raises:
            NotFoundError: If the project does not exist
        """
        response = await self.transport.request("GET", project_path(project))
        return parse_project(response)

    async def create(
        self,
        name: str,
        namespace_id: int | None = None,
        visibility: str = "private",
        description: str | None = None,
        initialize_with_readme: bool = False,
    ) -> Project:
        """
        Create a project.

        Args:
            name: Project name
            namespace_id: Namespace to create the project in
            visibility: "private", "internal" or "public"
            description: Optional description
            initialize_with_readme: Create an initial README commit

        Returns:
            The created Project
        """
        body = drop_none({
            "name": name,
            "namespace_id": namespace_id,
            "visibility": visibility,
            "description": description,
            "initialize_with_readme": initialize_with_readme,
        })
        response = await self.transport.request("POST", "/projects", body=body)
        return parse_project(response)

    async def edit(
        self,
        project: int | str,
        description: str | None = None,
        visibility: str | None = None,
    ) -> Project:
        """Update the description and/or visibility of a project."""
        body = drop_none({"description": description, "visibility": visibility})
        response = await self.transport.request("PUT", project_path(project), body=body)
        return parse_project(response)

    async def delete(self, project: int | str) -> None:
        """Delete a project."""
        await self.transport.request("DELETE", project_path(project))

    async def archive(self, project: int | str, sha: str | None = None) -> bytes:
        """Download a zip archive of the repository at ``sha``."""
        params = {"sha": sha} if sha else None
        return await self.transport.request_bytes(
            "GET", f"{project_path(project)}/repository/archive.zip", params=params
        )
