"""
High-level task workflow.

``TaskOrchestrator`` wires the managers together around one client and one
config, and offers the end-to-end steps a caller usually needs.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from gitbase.cache import TimedCache
from gitbase.client import GitLabClient
from gitbase.config import OrchestratorConfig
from gitbase.logging import get_logger
from gitbase.orchestration.branches import BranchManager
from gitbase.orchestration.commits import CommitOrchestrator
from gitbase.orchestration.history import HistoryReader
from gitbase.orchestration.issues import IssueManager
from gitbase.orchestration.merge_requests import MergeRequestManager
from gitbase.orchestration.provisioning import Provisioner
from gitbase.orchestration.tokens import AccessTokenManager
from gitbase.types.branches import BranchRemovalResult, TaskBranch
from gitbase.types.commits import CommitResult, FileChange
from gitbase.types.merge_requests import MergeResult
from gitbase.types.projects import Project

logger = get_logger("orchestration")


class TaskOrchestrator:
    """
    Facade over provisioning, branches, commits, merge requests, tokens, history and issues.

    Example:
        ```python
        async with TaskOrchestrator(GitLabClient.from_env()) as orchestrator:
            project, task = await orchestrator.start_task("alice@example.com", "game")
            await orchestrator.save_changes(
                project.id, task.branch_name, [FileChange("README.md", "hi")]
            )
            await orchestrator.finish_task(project.id, task.branch_name)
        ```
    """

    def __init__(
        self,
        client: GitLabClient,
        config: OrchestratorConfig | None = None,
        user_cache: TimedCache | None = None,
    ) -> None:
        self.client = client
        self.config = config or OrchestratorConfig()
        self.history = HistoryReader(client, self.config)
        self.merge_requests = MergeRequestManager(client, self.history, self.config)
        self.branches = BranchManager(client, self.merge_requests, self.config)
        self.commits = CommitOrchestrator(
            client, self.branches, self.merge_requests, self.config
        )
        self.tokens = AccessTokenManager(client, self.config)
        self.issues = IssueManager(client, self.config)
        self.provisioner = Provisioner(client, self.config, user_cache=user_cache)

    @classmethod
    def from_env(cls, user_cache: TimedCache | None = None) -> "TaskOrchestrator":
        """Build client and config from ``GITLAB_*`` and ``GITBASE_*`` variables."""
        return cls(GitLabClient.from_env(), OrchestratorConfig.from_env(), user_cache)

    async def start_task(
        self,
        email: str,
        project_name: str,
        base_ref: str | None = None,
        description: str | None = None,
    ) -> tuple[Project, TaskBranch]:
        """Provision user and project, then open a new task branch."""
        user = await self.provisioner.ensure_user(email)
        project = await self.provisioner.ensure_project(user, project_name, description)
        task = await self.branches.create_task_branch(project.id, base_ref)
        logger.info("Started %s in %s for %s", task.branch_name, project.path_with_namespace, email)
        return project, task

    async def save_changes(
        self,
        project: int | str,
        branch: str,
        files: Iterable[FileChange | Mapping[str, Any]],
        message: str | None = None,
        base_commit: str | None = None,
        deleted_files: Iterable[str] | None = None,
    ) -> CommitResult:
        """Commit files to a task branch; the message always names the branch."""
        message = message or f"Update {branch}"
        if branch not in message:
            message = f"{branch}: {message}"
        return await self.commits.commit_files(
            project,
            files,
            message,
            branch=branch,
            base_commit=base_commit,
            deleted_files=deleted_files,
        )

    async def finish_task(self, project: int | str, branch: str) -> MergeResult:
        return await self.merge_requests.merge_task_branch(project, branch)

    async def cancel_task(self, project: int | str, branch: str) -> BranchRemovalResult:
        return await self.branches.remove_task_branch(project, branch)

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "TaskOrchestrator":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
