"""Repository files resource client (single-file reads and writes)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from gitbase.clients._parsing import project_path
from gitbase.exceptions import NotFoundError
from gitbase.transport import encode_path

if TYPE_CHECKING:
    from gitbase.transport import AsyncHTTPTransport


class RepositoryFilesClient:
    """Client for the repository files and tree endpoints."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the repository files client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    def _path(self, project: int | str, file_path: str) -> str:
        return f"{project_path(project)}/repository/files/{encode_path(file_path)}"

    async def show(self, project: int | str, file_path: str, ref: str) -> dict[str, Any]:
        """
        Get a file's metadata and base64 content at ``ref``.

        Raises:
            NotFoundError: If the file does not exist at ``ref``
        """
        return await self.transport.request(
            "GET", self._path(project, file_path), params={"ref": ref}
        )

    async def exists(self, project: int | str, file_path: str, ref: str) -> bool:
        """Return True if ``file_path`` exists at ``ref``."""
        try:
            await self.show(project, file_path, ref)
        except NotFoundError:
            return False
        return True

    async def create(
        self,
        project: int | str,
        file_path: str,
        branch: str,
        content: str,
        message: str,
        encoding: str = "text",
    ) -> dict[str, Any]:
        """Create a file with its own commit."""
        return await self.transport.request(
            "POST",
            self._path(project, file_path),
            body={
                "branch": branch,
                "content": content,
                "commit_message": message,
                "encoding": encoding,
            },
        )

    async def edit(
        self,
        project: int | str,
        file_path: str,
        branch: str,
        content: str,
        message: str,
        encoding: str = "text",
    ) -> dict[str, Any]:
        """Replace a file's content with its own commit."""
        return await self.transport.request(
            "PUT",
            self._path(project, file_path),
            body={
                "branch": branch,
                "content": content,
                "commit_message": message,
                "encoding": encoding,
            },
        )

    async def delete(
        self,
        project: int | str,
        file_path: str,
        branch: str,
        message: str,
    ) -> None:
        """Delete a file with its own commit."""
        await self.transport.request(
            "DELETE",
            self._path(project, file_path),
            body={"branch": branch, "commit_message": message},
        )

    async def tree(
        self,
        project: int | str,
        ref: str,
        recursive: bool = True,
        per_page: int = 100,
    ) -> list[str]:
        """List the paths of all files (blobs) at ``ref``."""
        response = await self.transport.request(
            "GET",
            f"{project_path(project)}/repository/tree",
            params={"ref": ref, "recursive": recursive, "per_page": per_page},
        )
        return [item["path"] for item in response or [] if item.get("type") == "blob"]
