"""
Merge request lifecycle for task branches.

GitLab computes ``merge_status`` asynchronously. Listing task branches
therefore nudges every open merge request that is not known to be mergeable
(``merge_ref``) and re-reads it before reporting.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from gitbase.config import OrchestratorConfig
from gitbase.exceptions import (
    GitbaseError,
    MergeBlockedError,
    MissingResourceError,
    UnprocessableEntityError,
)
from gitbase.fanout import Outcomes, gather_outcomes
from gitbase.logging import get_logger, log_branch_operation
from gitbase.naming import ISSUE_PREFIX, TASK_PREFIX, TaskBranchName
from gitbase.orchestration._errors import wrap_errors
from gitbase.orchestration.history import HistoryReader
from gitbase.types.branches import Branch, TaskBranchStatus
from gitbase.types.commits import Commit
from gitbase.types.merge_requests import CANNOT_BE_MERGED, MERGEABLE, MergeRequest, MergeResult

if TYPE_CHECKING:
    from gitbase.client import GitLabClient

logger = get_logger("orchestration.merge_requests")


class MergeRequestManager:
    """Creates, refreshes, merges and closes merge requests of task branches."""

    def __init__(
        self,
        client: "GitLabClient",
        history: HistoryReader | None = None,
        config: OrchestratorConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.config = config or OrchestratorConfig()
        self.history = history or HistoryReader(client, self.config)
        self._sleep = sleep

    async def create_merge_request(
        self,
        project: int | str,
        source: str,
        target: str | None = None,
    ) -> int:
        """
        Open a merge request from ``source`` into ``target``.

        Returns:
            The merge request iid, or 0 if it could not be created. Failures
            are logged, never raised.
        """
        target = target or self.config.working_branch
        try:
            merge_request = await self.client.merge_requests.create(
                project,
                source_branch=source,
                target_branch=target,
                title=f"Merge {source} into {target}",
                remove_source_branch=False,
                squash=False,
            )
        except GitbaseError as exc:
            logger.warning(
                "Could not create merge request %s -> %s in %s: %s", source, target, project, exc
            )
            return 0
        logger.info(
            "Opened merge request !%s (%s -> %s) in %s", merge_request.iid, source, target, project
        )
        return merge_request.iid

    async def ensure_merge_request(
        self,
        project: int | str,
        source: str,
        target: str | None = None,
    ) -> int:
        """Return the iid of the open merge request for ``source``, creating one if needed."""
        target = target or self.config.working_branch
        try:
            existing = await self.client.merge_requests.list(
                project, state="opened", source_branch=source, target_branch=target
            )
        except GitbaseError as exc:
            logger.warning("Could not list merge requests for %s in %s: %s", source, project, exc)
            return 0
        if existing:
            return existing[0].iid
        return await self.create_merge_request(project, source, target)

    async def get_open_merge_request(
        self,
        project: int | str,
        source: str,
        target: str | None = None,
    ) -> MergeRequest | None:
        target = target or self.config.working_branch
        with wrap_errors("find merge request", f"{project}:{source}->{target}"):
            found = await self.client.merge_requests.list(
                project, state="opened", source_branch=source, target_branch=target
            )
        return found[0] if found else None

    async def refresh_and_list_task_branches(self, project: int | str) -> list[TaskBranchStatus]:
        """
        List task and issue branches that have an open merge request.

        Merge requests whose status is not ``can_be_merged`` are asked to
        recompute it first. Task branches that already carry commits but lost
        their merge request get a new one.

        Returns:
            One TaskBranchStatus per branch with a merge request
        """
        with wrap_errors("list task branches", str(project)):
            searches = await gather_outcomes({
                prefix: self.client.branches.list(project, search=prefix)
                for prefix in (TASK_PREFIX, ISSUE_PREFIX)
            })
            if searches.failures:
                raise next(iter(searches.failures.values()))
            branches: dict[str, Branch] = {}
            for found in searches.successes.values():
                for branch in found:
                    if TaskBranchName.try_parse(branch.name):
                        branches[branch.name] = branch

            open_requests = await self.client.merge_requests.list(project, state="opened")

        by_source = {
            mr.source_branch: mr for mr in open_requests if mr.source_branch in branches
        }
        refreshed = await gather_outcomes({
            name: self._refresh_status(project, mr) for name, mr in by_source.items()
        })
        by_source.update(refreshed.successes)

        commits = await gather_outcomes({
            name: self._task_commits(project, name) for name in branches
        })
        for name, exc in commits.failures.items():
            logger.warning("Could not read task commits of %s in %s: %s", name, project, exc)

        statuses = []
        for name, branch in sorted(branches.items()):
            first, last = commits.successes.get(name, (None, None))
            merge_request = by_source.get(name)
            iid = merge_request.iid if merge_request else 0
            merge_status = merge_request.merge_status if merge_request else None
            if not merge_request and first and last:
                iid = await self.create_merge_request(project, name)
            if not iid:
                continue
            statuses.append(
                TaskBranchStatus(
                    name=name,
                    commit_id=branch.commit_id,
                    protected=branch.protected,
                    merge_request_iid=iid,
                    merge_status=merge_status,
                    first_commit=first,
                    last_commit=last,
                )
            )
        return statuses

    async def _refresh_status(self, project: int | str, merge_request: MergeRequest) -> MergeRequest:
        if merge_request.merge_status == MERGEABLE:
            return merge_request
        try:
            await self.client.merge_requests.merge_ref(project, merge_request.iid)
        except GitbaseError as exc:
            logger.warning("merge_ref failed for !%s in %s: %s", merge_request.iid, project, exc)
        try:
            return await self.client.merge_requests.show(project, merge_request.iid)
        except GitbaseError as exc:
            logger.warning("Could not re-read !%s in %s: %s", merge_request.iid, project, exc)
            return merge_request

    async def _task_commits(
        self, project: int | str, branch: str
    ) -> tuple[Commit | None, Commit | None]:
        first, last = await asyncio.gather(
            self.history.get_task_first_commit(project, branch),
            self.history.get_task_last_commit(project, branch),
        )
        return first, last

    async def merge_task_branch(
        self,
        project: int | str,
        source: str,
        target: str | None = None,
    ) -> MergeResult:
        """
        Merge a task branch through its open merge request and delete it.

        A 422 from the host (status not settled yet) is retried once after
        ``merge_retry_delay`` seconds.

        Raises:
            MissingResourceError: If a branch or the merge request is missing
            MergeBlockedError: If the host reports the branch cannot be merged
            OperationError: On any other remote failure
        """
        target = target or self.config.working_branch
        with wrap_errors("merge task branch", f"{project}:{source}->{target}"):
            for name in (source, target):
                if not await self.client.branches.exists(project, name):
                    raise MissingResourceError("Branch", name)

            found = await self.client.merge_requests.list(
                project, state="opened", source_branch=source, target_branch=target
            )
            if not found:
                raise MissingResourceError("Merge request", f"{source} -> {target}")
            merge_request = found[0]
            if not merge_request.merge_status or merge_request.merge_status == CANNOT_BE_MERGED:
                raise MergeBlockedError(merge_request.iid, merge_request.merge_status)

            try:
                await self._accept(project, merge_request.iid)
            except UnprocessableEntityError as exc:
                logger.warning(
                    "Merge of !%s not ready (%s); retrying in %ss",
                    merge_request.iid,
                    exc.message,
                    self.config.merge_retry_delay,
                )
                await self._sleep(self.config.merge_retry_delay)
                await self._accept(project, merge_request.iid)

            await self.client.branches.delete(project, source)
            log_branch_operation("delete merged", project, source)

        logger.info("Merged %s into %s in %s (!%s)", source, target, project, merge_request.iid)
        return MergeResult(
            merged_branch=source,
            target_branch=target,
            merge_request_iid=merge_request.iid,
        )

    async def _accept(self, project: int | str, iid: int) -> MergeRequest:
        return await self.client.merge_requests.accept(
            project,
            iid,
            merge_when_pipeline_succeeds=False,
            should_remove_source_branch=False,
        )

    async def close_merge_requests_for_branch(
        self, project: int | str, branch: str
    ) -> Outcomes[int, MergeRequest]:
        """
        Close every open merge request whose source is ``branch``.

        Closing is best effort: each failure is logged and reported in the
        returned ``Outcomes`` without stopping the others.
        """
        with wrap_errors("list merge requests", f"{project}:{branch}"):
            open_requests = await self.client.merge_requests.list(
                project, state="opened", source_branch=branch
            )
        outcomes = await gather_outcomes({
            mr.iid: self.client.merge_requests.edit(project, mr.iid, state_event="close")
            for mr in open_requests
        })
        for iid, exc in outcomes.failures.items():
            logger.warning("Failed to close merge request !%s in %s: %s", iid, project, exc)
        return outcomes
