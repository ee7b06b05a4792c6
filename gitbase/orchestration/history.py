"""
History and diff reads.

Commit listing understands task and issue branches: listings of a task branch
start at the branch's creation time and only keep commits whose message
mentions the branch name.
"""

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from gitbase.config import OrchestratorConfig
from gitbase.exceptions import GitbaseError
from gitbase.logging import get_logger
from gitbase.naming import TaskBranchName, is_commit_hash
from gitbase.orchestration._errors import InputError, wrap_errors
from gitbase.types.commits import Commit, CommitPage, Diff
from gitbase.types.tags import Tag

if TYPE_CHECKING:
    from gitbase.client import GitLabClient

logger = get_logger("orchestration.history")


def _mentions(commits: list[Commit], branch: str) -> list[Commit]:
    return [c for c in commits if branch in (c.message or "")]


class HistoryReader:
    """Read-only access to commits, diffs, tags and archives."""

    def __init__(self, client: "GitLabClient", config: OrchestratorConfig | None = None) -> None:
        self.client = client
        self.config = config or OrchestratorConfig()

    async def list_commits(
        self,
        project: int | str,
        branch: str | None = None,
        page: int = 1,
        per_page: int = 20,
        until_commit: str | None = None,
    ) -> CommitPage:
        """
        List one page of a branch's history, newest first.

        Args:
            project: Project id or path
            branch: Branch to read (default: the working branch)
            page: Page number (1-indexed)
            per_page: Page size
            until_commit: Only commits up to this commit (40-hex sha)

        Returns:
            CommitPage whose ``total`` comes from the X-Total header

        Raises:
            OperationError: If the history cannot be read
        """
        if page < 1 or per_page < 1:
            raise InputError("page and per_page must be positive")
        ref = branch or self.config.working_branch
        task_name = TaskBranchName.try_parse(ref)

        with wrap_errors("list commits", f"{project}@{ref}"):
            until: datetime | None = None
            if until_commit:
                until = await self._commit_date(project, until_commit)

            commits, total = await self.client.commits.list(
                project,
                ref_name=ref,
                since=task_name.created_at if task_name else None,
                until=until,
                page=page,
                per_page=per_page,
            )

        if task_name:
            commits = _mentions(commits, ref)
        return CommitPage(
            commits=commits,
            total=total,
            has_more=page * per_page < total,
        )

    async def _commit_date(self, project: int | str, sha: str) -> datetime | None:
        if not is_commit_hash(sha):
            logger.warning("Ignoring until_commit %r: not a commit hash", sha)
            return None
        try:
            commit = await self.client.commits.show(project, sha)
        except GitbaseError as exc:
            logger.warning("Could not resolve until_commit %s: %s", sha, exc)
            return None
        return commit.committed_date or commit.created_at

    async def get_commit(self, project: int | str, sha: str) -> Commit:
        with wrap_errors("get commit", f"{project}@{sha}"):
            return await self.client.commits.show(project, sha)

    async def get_commit_diff(self, project: int | str, sha: str) -> list[Diff]:
        with wrap_errors("get commit diff", f"{project}@{sha}"):
            return await self.client.commits.diff(project, sha)

    async def get_last_commit(self, project: int | str, branch: str | None = None) -> Commit | None:
        """Return the head commit of a branch, or None for an empty history."""
        ref = branch or self.config.working_branch
        with wrap_errors("get last commit", f"{project}@{ref}"):
            commits, _ = await self.client.commits.list(project, ref_name=ref, per_page=1)
        return commits[0] if commits else None

    async def get_task_first_commit(self, project: int | str, branch: str) -> Commit | None:
        """
        Return the oldest commit made for a task branch.

        Only commits within ``task_window_seconds`` of the branch's creation
        whose message names the branch are considered.
        """
        name = TaskBranchName.parse(branch)
        since = name.created_at
        until = since + timedelta(seconds=self.config.task_window_seconds) if since else None
        with wrap_errors("get task first commit", f"{project}@{branch}"):
            commits, _ = await self.client.commits.list(
                project,
                ref_name=branch,
                since=since,
                until=until,
                per_page=100,
                order="topo",
            )
        matching = _mentions(commits, branch)
        return matching[-1] if matching else None

    async def get_task_last_commit(self, project: int | str, branch: str) -> Commit | None:
        """Return the newest commit made for a task branch."""
        name = TaskBranchName.parse(branch)
        with wrap_errors("get task last commit", f"{project}@{branch}"):
            commits, _ = await self.client.commits.list(
                project, ref_name=branch, since=name.created_at, per_page=1
            )
        matching = _mentions(commits, branch)
        return matching[0] if matching else None

    async def list_tags(self, project: int | str) -> list[Tag]:
        with wrap_errors("list tags", str(project)):
            return await self.client.tags.list(project)

    async def create_tag(
        self,
        project: int | str,
        name: str,
        ref: str | None = None,
        message: str | None = None,
    ) -> Tag:
        ref = ref or self.config.working_branch
        with wrap_errors("create tag", f"{project}:{name}"):
            tag = await self.client.tags.create(project, name, ref, message)
        logger.info("Created tag %s at %s in %s", name, ref, project)
        return tag

    async def list_files(self, project: int | str, ref: str | None = None) -> list[str]:
        """List every file path on a ref."""
        ref = ref or self.config.working_branch
        with wrap_errors("list files", f"{project}@{ref}"):
            return await self.client.files.tree(project, ref)

    async def download_archive(self, project: int | str, sha: str | None = None) -> bytes:
        """Download a zip archive of a ref (default: the working branch)."""
        ref = sha or self.config.working_branch
        with wrap_errors("download archive", f"{project}@{ref}"):
            return await self.client.projects.archive(project, ref)
