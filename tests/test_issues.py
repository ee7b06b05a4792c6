"""
Tests for issue listing and label updates.
"""

import pytest

from gitbase.config import OrchestratorConfig
from gitbase.exceptions import MissingResourceError, OperationError, ServerError
from gitbase.orchestration import InputError, IssueManager
from gitbase.testing import InMemoryGitLab
from gitbase.types.projects import Project


@pytest.fixture
def issues(gitlab: InMemoryGitLab, orchestrator_config: OrchestratorConfig) -> IssueManager:
    return IssueManager(gitlab, orchestrator_config)  # type: ignore[arg-type]


class TestListProjectIssues:
    async def test_only_labelled_issues_oldest_first(
        self, issues: IssueManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        first = gitlab.add_issue(sample_project.id, "Add a level")
        gitlab.add_issue(sample_project.id, "Unrelated", labels=["bug"])
        gitlab.advance_clock(60)
        second = gitlab.add_issue(sample_project.id, "Fix jump", labels=["agentic", "bug"])

        page = await issues.list_project_issues(sample_project.id)

        assert [issue.iid for issue in page.issues] == [first.iid, second.iid]
        assert page.total == 2
        assert not page.has_more
        call = gitlab.get_calls("issues.list")[0]
        assert call.args[1:5] == ("opened", ["agentic"], "created_at", "asc")

    async def test_additional_label_narrows_the_list(
        self, issues: IssueManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        gitlab.add_issue(sample_project.id, "Add a level")
        bug = gitlab.add_issue(sample_project.id, "Fix jump", labels=["agentic", "bug"])

        page = await issues.list_project_issues(sample_project.id, additional_label="bug")

        assert [issue.iid for issue in page.issues] == [bug.iid]
        assert gitlab.get_calls("issues.list")[0].args[2] == ["agentic", "bug"]

    async def test_paging_reports_more(
        self, issues: IssueManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        for n in range(5):
            gitlab.add_issue(sample_project.id, f"Issue {n}")

        first = await issues.list_project_issues(sample_project.id, page=1, per_page=2)
        last = await issues.list_project_issues(sample_project.id, page=3, per_page=2)

        assert [issue.title for issue in first.issues] == ["Issue 0", "Issue 1"]
        assert first.total == 5
        assert first.has_more
        assert [issue.title for issue in last.issues] == ["Issue 4"]
        assert not last.has_more

    async def test_state_filter(
        self, issues: IssueManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        gitlab.add_issue(sample_project.id, "Open one")
        closed = gitlab.add_issue(sample_project.id, "Done", state="closed")

        page = await issues.list_project_issues(sample_project.id, state="closed")
        everything = await issues.list_project_issues(sample_project.id, state="all")

        assert [issue.iid for issue in page.issues] == [closed.iid]
        assert everything.total == 2

    async def test_configured_label(self, gitlab: InMemoryGitLab, sample_project: Project) -> None:
        gitlab.add_issue(sample_project.id, "Agent work")
        tagged = gitlab.add_issue(sample_project.id, "Bot work", labels=["bot"])
        manager = IssueManager(gitlab, OrchestratorConfig(issue_label="bot"))  # type: ignore[arg-type]

        page = await manager.list_project_issues(sample_project.id)

        assert [issue.iid for issue in page.issues] == [tagged.iid]

    @pytest.mark.parametrize(
        "kwargs",
        [{"page": 0}, {"per_page": 0}, {"state": "merged"}],
    )
    async def test_invalid_arguments(
        self, issues: IssueManager, gitlab: InMemoryGitLab, sample_project: Project, kwargs: dict
    ) -> None:
        with pytest.raises(InputError):
            await issues.list_project_issues(sample_project.id, **kwargs)

        assert not gitlab.was_called("issues.list")

    async def test_remote_failure_is_wrapped(
        self, issues: IssueManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        gitlab.fail("issues.list", ServerError("SERVER_ERROR", "boom", status_code=500))

        with pytest.raises(OperationError) as exc_info:
            await issues.list_project_issues(sample_project.id)

        assert exc_info.value.operation == "list issues"
        assert isinstance(exc_info.value.cause, ServerError)


class TestGetIssue:
    async def test_returns_issue(
        self, issues: IssueManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        seeded = gitlab.add_issue(sample_project.id, "Add a level", description="Level 3")

        issue = await issues.get_issue(sample_project.id, seeded.iid)

        assert issue.title == "Add a level"
        assert issue.description == "Level 3"
        assert issue.has_label("agentic")

    async def test_missing_issue(
        self, issues: IssueManager, sample_project: Project
    ) -> None:
        with pytest.raises(MissingResourceError) as exc_info:
            await issues.get_issue(sample_project.id, 42)

        assert exc_info.value.kind == "Issue"
        assert exc_info.value.name == "#42"


class TestUpdateIssueLabels:
    async def test_replaces_labels(
        self, issues: IssueManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        seeded = gitlab.add_issue(sample_project.id, "Add a level", labels=["agentic", "todo"])

        updated = await issues.update_issue_labels(sample_project.id, seeded.iid, ["agentic", "done"])

        assert updated.labels == ["agentic", "done"]
        assert gitlab.issue(sample_project.id, seeded.iid).labels == ["agentic", "done"]

    async def test_clearing_labels_hides_the_issue(
        self, issues: IssueManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        seeded = gitlab.add_issue(sample_project.id, "Add a level")

        await issues.update_issue_labels(sample_project.id, seeded.iid, [])
        page = await issues.list_project_issues(sample_project.id)

        assert gitlab.issue(sample_project.id, seeded.iid).labels == []
        assert page.total == 0

    async def test_missing_issue(
        self, issues: IssueManager, gitlab: InMemoryGitLab, sample_project: Project
    ) -> None:
        with pytest.raises(MissingResourceError):
            await issues.update_issue_labels(sample_project.id, 7, ["agentic"])

        assert gitlab.was_called("issues.edit")


async def test_orchestrator_exposes_issues(orchestrator, gitlab: InMemoryGitLab, sample_project: Project) -> None:
    seeded = gitlab.add_issue(sample_project.id, "Add a level")

    page = await orchestrator.issues.list_project_issues(sample_project.id)

    assert [issue.iid for issue in page.issues] == [seeded.iid]
