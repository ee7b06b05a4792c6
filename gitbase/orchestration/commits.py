"""
Commit orchestration.

Writes a set of file changes to a branch as one commit. Protected branches
are redirected to a temporary branch, create/update is decided per path just
before submission, and a 403 on the batch commit degrades to one commit per
file.
"""

import asyncio
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from gitbase.config import OrchestratorConfig
from gitbase.exceptions import AuthorizationError, CommitError, GitbaseError
from gitbase.logging import get_logger
from gitbase.naming import is_task_branch, now_millis
from gitbase.orchestration._errors import InputError, wrap_errors
from gitbase.orchestration.branches import BranchManager
from gitbase.orchestration.merge_requests import MergeRequestManager
from gitbase.strategies import FallbackChain, FallbackStrategy
from gitbase.types.commits import CommitAction, CommitResult, FileChange

if TYPE_CHECKING:
    from gitbase.client import GitLabClient

logger = get_logger("orchestration.commits")


@dataclass
class CommitRequest:
    """Everything a commit strategy needs to write one set of actions."""

    project: int | str
    branch: str
    message: str
    actions: list[CommitAction] = field(default_factory=list)


class BatchCommitStrategy(FallbackStrategy[CommitRequest, CommitResult]):
    """One commit carrying every action."""

    name = "batch commit"
    fallback_on = (AuthorizationError,)

    def __init__(self, client: "GitLabClient") -> None:
        self.client = client

    async def run(self, request: CommitRequest) -> CommitResult:
        commit = await self.client.commits.create(
            request.project, request.branch, request.message, request.actions
        )
        logger.info(
            "Committed %d file(s) to %s in %s (%s)",
            len(request.actions),
            request.branch,
            request.project,
            commit.short_id,
        )
        return CommitResult(commit=commit, branch=request.branch)


class PerFileCommitStrategy(FallbackStrategy[CommitRequest, CommitResult]):
    """
    One commit per file, with message ``<message>: <path>``.

    Files that fail are reported in ``failed_paths``; files already written
    stay written.
    """

    name = "per-file commit"

    def __init__(self, client: "GitLabClient") -> None:
        self.client = client

    async def run(self, request: CommitRequest) -> CommitResult:
        failed: list[str] = []
        for action in request.actions:
            try:
                await self._write(request, action)
            except GitbaseError as exc:
                logger.warning("Could not write %s to %s: %s", action.file_path, request.branch, exc)
                failed.append(action.file_path)

        if request.actions and len(failed) == len(request.actions):
            raise CommitError(
                f"No file could be written to {request.branch}", failed_paths=failed
            )

        commits, _ = await self.client.commits.list(
            request.project, ref_name=request.branch, per_page=1
        )
        return CommitResult(
            commit=commits[0] if commits else None,
            branch=request.branch,
            degraded=True,
            failed_paths=failed,
        )

    async def _write(self, request: CommitRequest, action: CommitAction) -> None:
        files = self.client.files
        message = f"{request.message}: {action.file_path}"
        if action.action == "delete":
            await files.delete(request.project, action.file_path, request.branch, message)
        elif action.action == "update":
            await files.edit(
                request.project,
                action.file_path,
                request.branch,
                action.content or "",
                message,
                encoding=action.encoding,
            )
        else:
            await files.create(
                request.project,
                action.file_path,
                request.branch,
                action.content or "",
                message,
                encoding=action.encoding,
            )


def _is_binary(entry: Mapping[str, Any]) -> bool:
    return bool(entry.get("is_binary", entry.get("isBinary", False)))


def files_from_file_map(file_map: Mapping[str, Mapping[str, Any]]) -> list[FileChange]:
    """
    Convert an editor file map (``path -> {content, isBinary, type}``) to FileChanges.

    Folder entries are skipped.
    """
    changes = []
    for path, entry in file_map.items():
        if entry.get("type") == "folder":
            continue
        changes.append(
            FileChange(
                path=path,
                content=entry.get("content") or "",
                is_binary=_is_binary(entry),
            )
        )
    return changes


def _coerce(change: FileChange | Mapping[str, Any]) -> FileChange:
    if isinstance(change, FileChange):
        return change
    return FileChange(
        path=change["path"],
        content=change.get("content") or "",
        is_binary=_is_binary(change),
    )


class CommitOrchestrator:
    """
    Persists file changes on a branch as a single unit of work.

    Example:
        ```python
        result = await commits.commit_files(
            "alice/game",
            [FileChange("index.html", "<h1>hi</h1>")],
            "task-1718000000000: first page",
            branch="task-1718000000000",
        )
        print(result.commit.id, result.redirected)
        ```
    """

    def __init__(
        self,
        client: "GitLabClient",
        branches: BranchManager | None = None,
        merge_requests: MergeRequestManager | None = None,
        config: OrchestratorConfig | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self.client = client
        self.config = config or OrchestratorConfig()
        self.merge_requests = merge_requests or MergeRequestManager(client, config=self.config)
        self.branches = branches or BranchManager(
            client, self.merge_requests, self.config, clock=clock
        )
        self._chain: FallbackChain[CommitRequest, CommitResult] = FallbackChain(
            [BatchCommitStrategy(client), PerFileCommitStrategy(client)]
        )

    async def commit_files(
        self,
        project: int | str,
        files: Iterable[FileChange | Mapping[str, Any]],
        message: str,
        branch: str | None = None,
        base_commit: str | None = None,
        deleted_files: Iterable[str] | None = None,
    ) -> CommitResult:
        """
        Write ``files`` (and delete ``deleted_files``) on ``branch`` in one commit.

        Args:
            project: Project id or path
            files: FileChange objects or ``{"path", "content", "is_binary"}`` mappings
                (``isBinary`` is accepted too)
            message: Commit message
            branch: Target branch (default: the working branch)
            base_commit: Rewrite the branch to this commit before writing
            deleted_files: Paths to delete; paths that do not exist are skipped

        Returns:
            CommitResult naming the branch actually written to. ``redirected``
            is set when ``branch`` was protected, ``degraded`` when the
            per-file fallback was used.

        Raises:
            MissingResourceError: If the branch does not exist
            CommitError: If the per-file fallback could not write any file
            OperationError: On any other remote failure
        """
        changes: dict[str, FileChange] = {}
        for change in files:
            coerced = _coerce(change)
            changes[coerced.path] = coerced
        deletions = [path for path in dict.fromkeys(deleted_files or []) if path not in changes]
        if not changes and not deletions:
            raise InputError("Nothing to commit: no files and no deletions given")
        if not message:
            raise InputError("A commit message is required")

        branch = branch or self.config.working_branch
        with wrap_errors("commit files", f"{project}:{branch}"):
            target = await self.branches.resolve_writable_branch(project, branch)
            await self.branches.require_branch(project, target)
            if base_commit:
                await self.branches.reset_branch_to_commit(project, target, base_commit)

            actions = await self.derive_actions(project, target, list(changes.values()), deletions)
            if not actions:
                logger.info("Nothing left to commit on %s in %s", target, project)
                commits, _ = await self.client.commits.list(project, ref_name=target, per_page=1)
                result = CommitResult(commit=commits[0] if commits else None, branch=target)
            else:
                result = await self._chain.run(
                    CommitRequest(project=project, branch=target, message=message, actions=actions)
                )

        result.redirected = target != branch
        if is_task_branch(target):
            result.merge_request_iid = await self.merge_requests.ensure_merge_request(project, target)
        return result

    async def derive_actions(
        self,
        project: int | str,
        branch: str,
        changes: list[FileChange],
        deletions: list[str],
    ) -> list[CommitAction]:
        """
        Turn changes into commit actions by probing which paths exist on ``branch``.

        Existence checks run concurrently, one per path.
        """
        paths = [change.path for change in changes] + deletions
        exists = await asyncio.gather(
            *(self.client.files.exists(project, path, branch) for path in paths)
        )
        existing = dict(zip(paths, exists))

        actions = []
        for change in changes:
            content, encoding = change.encoded()
            actions.append(
                CommitAction(
                    action="update" if existing[change.path] else "create",
                    file_path=change.path,
                    content=content,
                    encoding=encoding,
                )
            )
        for path in deletions:
            if not existing[path]:
                logger.info("Skipping deletion of %s: not on %s", path, branch)
                continue
            actions.append(CommitAction(action="delete", file_path=path))
        return actions
