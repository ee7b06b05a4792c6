"""
Tests for the branch lifecycle: task branches, resets with backups,
protected-branch redirects, soft deletes and issue branch lookup.
"""

import pytest

from gitbase.config import OrchestratorConfig
from gitbase.exceptions import (
    BackupRestoreError,
    MissingResourceError,
    OperationError,
    ServerError,
)
from gitbase.naming import TaskBranchName, parse_backup_branch_name
from gitbase.orchestration import BranchManager, MergeRequestManager
from gitbase.testing import InMemoryGitLab
from gitbase.types.projects import Project

FIXED_MS = 1718000000000


@pytest.fixture
def branches(gitlab: InMemoryGitLab, orchestrator_config: OrchestratorConfig) -> BranchManager:
    merge_requests = MergeRequestManager(gitlab, config=orchestrator_config)  # type: ignore[arg-type]
    return BranchManager(gitlab, merge_requests, orchestrator_config, clock=lambda: FIXED_MS)  # type: ignore[arg-type]


def _boom() -> ServerError:
    return ServerError("SERVER_ERROR", "boom", status_code=500)


class TestCreateTaskBranch:
    async def test_branch_and_merge_request(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        task = await branches.create_task_branch(sample_project.id)

        assert task.branch_name == f"task-{FIXED_MS}"
        assert TaskBranchName.parse(task.branch_name).created_ms == FIXED_MS
        assert gitlab.branch_head(sample_project.id, task.branch_name) == gitlab.branch_head(
            sample_project.id, "develop"
        )
        merge_request = gitlab.merge_request(sample_project.id, task.merge_request_iid)
        assert merge_request.source_branch == task.branch_name
        assert merge_request.target_branch == "develop"
        assert merge_request.title == f"Merge {task.branch_name} into develop"

    async def test_base_ref_moves_working_branch(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        release = gitlab.seed_commit(sample_project.id, "main", {"CHANGELOG.md": "1.0"})

        task = await branches.create_task_branch(sample_project.id, base_ref="main")

        assert gitlab.branch_head(sample_project.id, task.branch_name) == release.id
        assert gitlab.branch_head(sample_project.id, "develop") == release.id

    async def test_merge_request_failure_gives_zero(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        gitlab.fail("merge_requests.create", _boom())

        task = await branches.create_task_branch(sample_project.id)

        assert task.merge_request_iid == 0
        assert task.branch_name in gitlab.branch_names(sample_project.id)

    async def test_branch_failure_is_wrapped(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        gitlab.fail("branches.create", _boom())

        with pytest.raises(OperationError) as exc_info:
            await branches.create_task_branch(sample_project.id)

        assert exc_info.value.operation == "create task branch"
        assert not gitlab.was_called("merge_requests.create")


class TestResetBranch:
    async def test_backup_holds_previous_head(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        root = gitlab.branch_head(sample_project.id, "develop")
        newer = gitlab.seed_commit(sample_project.id, "develop", {"a.txt": "a"})

        result = await branches.reset_branch_to_commit(sample_project.id, "develop", root)

        assert result.branch == "develop"
        assert result.reverted_to_commit == root
        assert result.backup_branch == f"backup-develop-{FIXED_MS}"
        assert parse_backup_branch_name(result.backup_branch) == ("develop", FIXED_MS)
        assert gitlab.branch_head(sample_project.id, "develop") == root
        assert gitlab.branch_head(sample_project.id, result.backup_branch) == newer.id

    async def test_backup_is_created_before_delete(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        root = gitlab.branch_head(sample_project.id, "develop")

        await branches.reset_branch_to_commit(sample_project.id, "develop", root)

        mutations = [c for c in gitlab.get_calls() if c.method in ("branches.create", "branches.delete")]
        assert mutations[0].method == "branches.create"
        assert mutations[0].args[1].startswith("backup-develop-")
        assert mutations[1].method == "branches.delete"

    async def test_missing_branch(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        root = gitlab.branch_head(sample_project.id, "main")

        with pytest.raises(MissingResourceError) as exc_info:
            await branches.reset_branch_to_commit(sample_project.id, "feature", root)

        assert exc_info.value.kind == "Branch"
        assert not gitlab.was_called("branches.create")

    async def test_missing_commit(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        with pytest.raises(MissingResourceError) as exc_info:
            await branches.reset_branch_to_commit(sample_project.id, "develop", "0" * 40)

        assert exc_info.value.kind == "Commit"
        assert not gitlab.was_called("branches.delete")

    async def test_failed_rewrite_restores_branch(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        root = gitlab.branch_head(sample_project.id, "develop")
        head = gitlab.seed_commit(sample_project.id, "develop", {"a.txt": "a"}).id
        gitlab.fail("branches.create", _boom(), when=lambda project, branch, ref: ref == root)

        with pytest.raises(OperationError) as exc_info:
            await branches.reset_branch_to_commit(sample_project.id, "develop", root)

        assert isinstance(exc_info.value.cause, ServerError)
        assert gitlab.branch_head(sample_project.id, "develop") == head
        assert f"backup-develop-{FIXED_MS}" in gitlab.branch_names(sample_project.id)

    async def test_failed_restore_names_backup(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        root = gitlab.branch_head(sample_project.id, "develop")
        gitlab.seed_commit(sample_project.id, "develop", {"a.txt": "a"})
        gitlab.fail("branches.create", _boom(), when=lambda project, branch, ref: ref == root)
        gitlab.fail(
            "branches.create", _boom(), when=lambda project, branch, ref: ref.startswith("backup-")
        )

        with pytest.raises(BackupRestoreError) as exc_info:
            await branches.reset_branch_to_commit(sample_project.id, "develop", root)

        backup = f"backup-develop-{FIXED_MS}"
        assert exc_info.value.backup_branch == backup
        assert backup in exc_info.value.message
        assert backup in gitlab.branch_names(sample_project.id)

    async def test_missing_branch_recovered_from_newest_backup(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        root = gitlab.branch_head(sample_project.id, "develop")
        newer = gitlab.seed_commit(sample_project.id, "develop", {"a.txt": "a"})
        await gitlab.branches.create(sample_project.id, "backup-develop-100", root)
        await gitlab.branches.create(sample_project.id, "backup-develop-200", newer.id)
        await gitlab.branches.delete(sample_project.id, "develop")

        used = await branches.recover_from_backup(sample_project.id, "develop")

        assert used == "backup-develop-200"
        assert gitlab.branch_head(sample_project.id, "develop") == newer.id

    async def test_reset_recovers_interrupted_branch(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        root = gitlab.branch_head(sample_project.id, "develop")
        await gitlab.branches.create(sample_project.id, "backup-develop-100", root)
        await gitlab.branches.delete(sample_project.id, "develop")

        result = await branches.reset_branch_to_commit(sample_project.id, "develop", root)

        assert result.reverted_to_commit == root
        assert gitlab.branch_head(sample_project.id, "develop") == root


class TestRedirect:
    async def test_unprotected_branch_is_used(
        self, branches: BranchManager, sample_project: Project
    ) -> None:
        assert await branches.resolve_writable_branch(sample_project.id, "develop") == "develop"

    async def test_protected_branch_gets_temp_copy(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        gitlab.protect(sample_project.id, "main")

        target = await branches.resolve_writable_branch(sample_project.id, "main")

        assert target == f"temp-{FIXED_MS}"
        assert gitlab.branch_head(sample_project.id, target) == gitlab.branch_head(
            sample_project.id, "main"
        )


class TestRemoveTaskBranch:
    async def test_soft_delete_closes_merge_requests(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        task = await branches.create_task_branch(sample_project.id)
        head = gitlab.branch_head(sample_project.id, task.branch_name)

        result = await branches.remove_task_branch(sample_project.id, task.branch_name)

        assert result.new_branch == f"removed-{task.branch_name}"
        assert result.closed_merge_requests == [task.merge_request_iid]
        assert result.failed_merge_requests == []
        assert "closed 1 merge request(s)" in result.message
        assert task.branch_name not in gitlab.branch_names(sample_project.id)
        assert gitlab.branch_head(sample_project.id, result.new_branch) == head
        assert gitlab.merge_request(sample_project.id, task.merge_request_iid).state == "closed"

    async def test_close_failures_are_reported(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        task = await branches.create_task_branch(sample_project.id)
        gitlab.fail("merge_requests.edit", _boom())

        result = await branches.remove_task_branch(sample_project.id, task.branch_name)

        assert result.closed_merge_requests == []
        assert result.failed_merge_requests == [task.merge_request_iid]
        assert result.new_branch in gitlab.branch_names(sample_project.id)

    async def test_missing_branch(self, branches: BranchManager, sample_project: Project) -> None:
        with pytest.raises(MissingResourceError):
            await branches.remove_task_branch(sample_project.id, "task-1")


class TestFindIssueBranch:
    @pytest.mark.parametrize("name", ["issue-12", "12-fix-login", "fix-12", "bug#12"])
    async def test_matching_branch_names(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project, name: str
    ) -> None:
        await gitlab.branches.create(sample_project.id, name, "develop")

        assert await branches.find_issue_branch(sample_project.id, 12) == name

    @pytest.mark.parametrize("name", ["issue-123", "112-fix", "fix-120"])
    async def test_other_numbers_do_not_match(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project, name: str
    ) -> None:
        await gitlab.branches.create(sample_project.id, name, "develop")

        assert await branches.find_issue_branch(sample_project.id, 12) is None

    async def test_merge_request_mention(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        await gitlab.branches.create(sample_project.id, "login-rework", "develop")
        await gitlab.merge_requests.create(
            sample_project.id, "login-rework", "develop", "Rework login", description="Closes #7"
        )

        assert await branches.find_issue_branch(sample_project.id, 7) == "login-rework"

    async def test_lookup_failure_gives_none(
        self, branches: BranchManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        gitlab.fail("branches.list", _boom())

        assert await branches.find_issue_branch(sample_project.id, 12) is None
