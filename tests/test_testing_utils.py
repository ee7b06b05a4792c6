"""
Tests for the in-memory GitLab and the fixture helpers.
"""

from datetime import date

import pytest

from gitbase.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from gitbase.testing import (
    InMemoryGitLab,
    create_mock_access_token,
    create_mock_commit,
    create_mock_merge_request,
    create_mock_project,
    create_mock_user,
)
from gitbase.types.commits import CommitAction
from gitbase.types.projects import Project


class TestErrorInjection:
    async def test_fail_once_then_recover(self, gitlab: InMemoryGitLab, sample_project: Project) -> None:
        gitlab.fail("branches.list", NotFoundError("NOT_FOUND", "gone", status_code=404))

        with pytest.raises(NotFoundError):
            await gitlab.branches.list(sample_project.id)
        assert [b.name for b in await gitlab.branches.list(sample_project.id)] == ["develop", "main"]
        assert gitlab.call_count("branches.list") == 2

    async def test_predicate_limits_failures(self, gitlab: InMemoryGitLab, sample_project: Project) -> None:
        gitlab.fail(
            "branches.show",
            AuthorizationError("FORBIDDEN", "no", status_code=403),
            times=None,
            when=lambda project, branch: branch == "main",
        )

        assert (await gitlab.branches.show(sample_project.id, "develop")).name == "develop"
        for _ in range(2):
            with pytest.raises(AuthorizationError):
                await gitlab.branches.show(sample_project.id, "main")

    async def test_reset_clears_calls_and_failures(self, gitlab: InMemoryGitLab, sample_project: Project) -> None:
        gitlab.fail("branches.list", NotFoundError("NOT_FOUND", "gone"), times=None)
        with pytest.raises(NotFoundError):
            await gitlab.branches.list(sample_project.id)

        gitlab.reset()

        assert gitlab.get_calls() == []
        assert await gitlab.branches.list(sample_project.id)


class TestRepositoryBehaviour:
    async def test_protected_branch_rejects_pushes(
        self, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        gitlab.protect(sample_project.id, "main")

        with pytest.raises(AuthorizationError) as exc_info:
            await gitlab.commits.create(
                sample_project.id, "main", "msg", [CommitAction("create", "a.txt", "a")]
            )

        assert exc_info.value.status_code == 403

    async def test_file_actions_are_checked(self, gitlab: InMemoryGitLab, sample_project: Project) -> None:
        with pytest.raises(ValidationError):
            await gitlab.commits.create(
                sample_project.id, "develop", "msg", [CommitAction("create", "README.md", "x")]
            )
        with pytest.raises(ValidationError):
            await gitlab.commits.create(
                sample_project.id, "develop", "msg", [CommitAction("update", "missing.md", "x")]
            )

    async def test_duplicate_open_merge_request(
        self, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        await gitlab.merge_requests.create(sample_project.id, "develop", "main", "Release")

        with pytest.raises(ConflictError):
            await gitlab.merge_requests.create(sample_project.id, "develop", "main", "Release again")

    async def test_merge_ref_settles_status(self, gitlab: InMemoryGitLab, sample_project: Project) -> None:
        merge_request = await gitlab.merge_requests.create(sample_project.id, "develop", "main", "Release")
        assert merge_request.merge_status == "unchecked"

        await gitlab.merge_requests.merge_ref(sample_project.id, merge_request.iid)

        assert gitlab.merge_request(sample_project.id, merge_request.iid).is_mergeable

    async def test_new_project_has_root_commit(self, gitlab: InMemoryGitLab, sample_user) -> None:
        project = await gitlab.projects.create("empty", namespace_id=sample_user.namespace_id)

        assert gitlab.branch_names(project.id) == ["main"]
        commits, total = await gitlab.commits.list(project.id)
        assert total == 1
        assert commits[0].title == "Initial commit"

    async def test_projects_by_path(self, gitlab: InMemoryGitLab, sample_project: Project) -> None:
        assert (await gitlab.projects.show("alice/game")).id == sample_project.id
        assert (await gitlab.projects.show(str(sample_project.id))).id == sample_project.id
        with pytest.raises(NotFoundError):
            await gitlab.projects.show("bob/game")


class TestHelpers:
    def test_create_mock_user(self) -> None:
        user = create_mock_user(user_id=4, username="dana", is_admin=True)

        assert user.email == "dana@example.com"
        assert user.namespace_id == 4
        assert user.is_admin

    def test_create_mock_project(self) -> None:
        project = create_mock_project(name="game", namespace="alice")

        assert project.path_with_namespace == "alice/game"
        assert project.default_branch == "main"

    def test_create_mock_commit(self) -> None:
        commit = create_mock_commit(sha="c" * 40, message="Title\n\nBody")

        assert commit.short_id == "cccccccc"
        assert commit.title == "Title"

    def test_create_mock_merge_request(self) -> None:
        merge_request = create_mock_merge_request(iid=2)

        assert merge_request.is_mergeable
        assert merge_request.target_branch == "develop"

    def test_create_mock_access_token(self) -> None:
        token = create_mock_access_token(expires_in_days=10, today=date(2024, 6, 10))

        assert token.expires_at == date(2024, 6, 20)
        assert token.is_active(date(2024, 6, 10))
        assert token.days_remaining(date(2024, 6, 10)) == 10

    def test_sample_fixtures(self, sample_project: Project, gitlab: InMemoryGitLab, sample_access_token) -> None:
        assert gitlab.branch_names(sample_project.id) == ["develop", "main"]
        assert gitlab.file_content(sample_project.id, "develop", "README.md") == "# game\n"
        assert sample_access_token.is_active()
