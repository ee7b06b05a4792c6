"""
Branch lifecycle.

GitLab cannot move a branch, so a move is emulated with delete + recreate.
Rewrites of an existing branch always take a ``backup-<branch>-<ms>`` copy
first; the backup is never deleted automatically.
"""

import re
from collections.abc import Callable
from typing import TYPE_CHECKING

from gitbase.config import OrchestratorConfig
from gitbase.exceptions import (
    BackupRestoreError,
    GitbaseError,
    MissingResourceError,
    NotFoundError,
    OperationError,
)
from gitbase.logging import get_logger, log_branch_operation
from gitbase.naming import (
    BACKUP_PREFIX,
    TaskBranchName,
    backup_branch_name,
    now_millis,
    parse_backup_branch_name,
    removed_branch_name,
    temp_branch_name,
)
from gitbase.orchestration._errors import wrap_errors
from gitbase.orchestration.merge_requests import MergeRequestManager
from gitbase.types.branches import Branch, BranchRemovalResult, BranchResetResult, TaskBranch

if TYPE_CHECKING:
    from gitbase.client import GitLabClient

logger = get_logger("orchestration.branches")


def _issue_branch_pattern(issue_iid: int) -> re.Pattern[str]:
    n = re.escape(str(issue_iid))
    return re.compile(rf"issue-{n}(?!\d)|(?:^|\D){n}-|-{n}(?!\d)|#{n}(?!\d)")


def _issue_reference_pattern(issue_iid: int) -> re.Pattern[str]:
    n = re.escape(str(issue_iid))
    return re.compile(rf"#{n}(?!\d)|issue {n}(?!\d)", re.IGNORECASE)


class BranchManager:
    """
    Creates, rewrites, redirects and soft-deletes branches.

    Example:
        ```python
        branches = BranchManager(client, MergeRequestManager(client))
        task = await branches.create_task_branch("alice/game")
        await branches.reset_branch_to_commit("alice/game", task.branch_name, sha)
        ```
    """

    def __init__(
        self,
        client: "GitLabClient",
        merge_requests: MergeRequestManager | None = None,
        config: OrchestratorConfig | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self.client = client
        self.config = config or OrchestratorConfig()
        self.merge_requests = merge_requests or MergeRequestManager(client, config=self.config)
        self._clock = clock

    async def list_branches(self, project: int | str, search: str | None = None) -> list[Branch]:
        with wrap_errors("list branches", str(project)):
            return await self.client.branches.list(project, search=search)

    async def require_branch(self, project: int | str, branch: str) -> None:
        """
        Raises:
            MissingResourceError: If ``branch`` does not exist
        """
        if not await self.client.branches.exists(project, branch):
            raise MissingResourceError("Branch", branch)

    async def create_task_branch(
        self,
        project: int | str,
        base_ref: str | None = None,
    ) -> TaskBranch:
        """
        Create a ``task-<ms>`` branch and its merge request into the working branch.

        When ``base_ref`` is not the working branch, the working branch is
        moved to ``base_ref`` as well.

        Args:
            project: Project id or path
            base_ref: Branch, tag or sha to start from (default: working branch)

        Returns:
            TaskBranch; ``merge_request_iid`` is 0 if the merge request could
            not be created
        """
        working = self.config.working_branch
        base_ref = base_ref or working
        name = TaskBranchName.new_task(self._clock()).format()

        with wrap_errors("create task branch", f"{project}:{name}"):
            await self.client.branches.create(project, name, base_ref)
            log_branch_operation("create task branch", project, name, base_ref)
            if base_ref != working:
                await self.move_branch(project, working, base_ref)

        iid = await self.merge_requests.create_merge_request(project, name, working)
        return TaskBranch(branch_name=name, merge_request_iid=iid)

    async def move_branch(self, project: int | str, branch: str, ref: str) -> Branch:
        """Point ``branch`` at ``ref``, creating it if needed."""
        with wrap_errors("move branch", f"{project}:{branch}"):
            try:
                await self.client.branches.delete(project, branch)
            except NotFoundError:
                pass
            moved = await self.client.branches.create(project, branch, ref)
        log_branch_operation("move", project, branch, ref)
        return moved

    async def resolve_writable_branch(self, project: int | str, branch: str) -> str:
        """
        Return ``branch`` if it accepts pushes, else a fresh ``temp-<ms>`` copy of it.
        """
        with wrap_errors("resolve writable branch", f"{project}:{branch}"):
            protected = await self.client.protected_branches.list(project)
            if not any(rule.name == branch for rule in protected):
                return branch
            temp = temp_branch_name(self._clock())
            await self.client.branches.create(project, temp, branch)
        log_branch_operation("redirect protected", project, temp, branch)
        return temp

    async def reset_branch_to_commit(
        self,
        project: int | str,
        branch: str,
        commit: str,
    ) -> BranchResetResult:
        """
        Rewrite ``branch`` to point at ``commit``.

        A backup branch is created before anything is deleted. If the rewrite
        fails, the branch is recreated from the backup.

        Raises:
            MissingResourceError: If the branch or the commit does not exist
            BackupRestoreError: If both the rewrite and the restore failed
            OperationError: If the rewrite failed and the branch was restored
        """
        resource = f"{project}:{branch}"
        with wrap_errors("reset branch to commit", resource):
            if not await self.client.branches.exists(project, branch):
                if not await self.recover_from_backup(project, branch):
                    raise MissingResourceError("Branch", branch)
            try:
                await self.client.commits.show(project, commit)
            except NotFoundError:
                raise MissingResourceError("Commit", commit) from None

            backup = backup_branch_name(branch, self._clock())
            await self.client.branches.create(project, backup, branch)
            log_branch_operation("backup", project, backup, branch)

        try:
            await self.client.branches.delete(project, branch)
            await self.client.branches.create(project, branch, commit)
        except Exception as exc:
            logger.error(
                "Reset of %s to %s failed, restoring from %s: %s", branch, commit, backup, exc
            )
            await self._restore(project, branch, backup, exc)
            raise OperationError("reset branch to commit", resource, exc) from exc

        log_branch_operation("reset", project, branch, commit)
        return BranchResetResult(branch=branch, reverted_to_commit=commit, backup_branch=backup)

    async def _restore(
        self, project: int | str, branch: str, backup: str, cause: Exception
    ) -> None:
        try:
            try:
                await self.client.branches.delete(project, branch)
            except NotFoundError:
                pass
            await self.client.branches.create(project, branch, backup)
        except Exception as exc:
            logger.error("Restoring %s from %s failed: %s", branch, backup, exc)
            raise BackupRestoreError(branch, backup, exc) from cause
        log_branch_operation("restore", project, branch, backup)

    async def recover_from_backup(self, project: int | str, branch: str) -> str | None:
        """
        Recreate a missing ``branch`` from its newest backup.

        Covers resets interrupted between deleting and recreating the branch.

        Returns:
            The backup branch used, or None if there is none
        """
        candidates = await self.client.branches.list(project, search=f"{BACKUP_PREFIX}{branch}-")
        backups = []
        for candidate in candidates:
            parsed = parse_backup_branch_name(candidate.name)
            if parsed and parsed[0] == branch:
                backups.append((parsed[1], candidate.name))
        if not backups:
            return None
        _, newest = max(backups)
        await self.client.branches.create(project, branch, newest)
        logger.warning("Recovered missing branch %s from %s", branch, newest)
        return newest

    async def remove_task_branch(self, project: int | str, branch: str) -> BranchRemovalResult:
        """
        Soft-delete a branch: close its merge requests and rename it to ``removed-<branch>``.

        Merge requests that cannot be closed are reported, not raised.

        Raises:
            MissingResourceError: If the branch does not exist
        """
        new_branch = removed_branch_name(branch)
        with wrap_errors("remove task branch", f"{project}:{branch}"):
            await self.require_branch(project, branch)
            outcomes = await self.merge_requests.close_merge_requests_for_branch(project, branch)
            await self.client.branches.create(project, new_branch, branch)
            await self.client.branches.delete(project, branch)
        log_branch_operation("soft delete", project, branch, new_branch)
        return BranchRemovalResult(
            old_branch=branch,
            new_branch=new_branch,
            closed_merge_requests=sorted(outcomes.successes),
            failed_merge_requests=sorted(outcomes.failures),
        )

    async def find_issue_branch(self, project: int | str, issue_iid: int) -> str | None:
        """
        Find the branch working on an issue.

        Branch names are matched first (``issue-<n>``, ``<n>-``, ``-<n>``,
        ``#<n>``), then open merge requests whose title or description
        mention the issue. Lookup failures are logged and give None.
        """
        try:
            branches = await self.client.branches.list(project)
            pattern = _issue_branch_pattern(issue_iid)
            for branch in branches:
                if pattern.search(branch.name):
                    return branch.name

            reference = _issue_reference_pattern(issue_iid)
            for mr in await self.client.merge_requests.list(project, state="opened"):
                if reference.search(mr.title or "") or reference.search(mr.description or ""):
                    return mr.source_branch
        except GitbaseError as exc:
            logger.warning("Issue branch lookup for #%s in %s failed: %s", issue_iid, project, exc)
        return None
