"""
Pytest fixtures for gitbase testing.

Provides an in-memory GitLab, an orchestrator wired to it and sample data
for tests of code that uses gitbase.
"""

from collections.abc import Generator
from datetime import date, datetime, timedelta, timezone

import pytest

from gitbase.config import OrchestratorConfig
from gitbase.orchestration.service import TaskOrchestrator
from gitbase.testing.mock import InMemoryGitLab
from gitbase.types.commits import Commit
from gitbase.types.merge_requests import MergeRequest
from gitbase.types.projects import Project
from gitbase.types.tokens import AccessToken
from gitbase.types.users import User

# ============================================================================
# Helper Functions
# ============================================================================


def create_mock_user(
    user_id: int = 1,
    username: str = "mock-user",
    email: str | None = None,
    is_admin: bool = False,
) -> User:
    """Create a User with sensible defaults."""
    return User(
        id=user_id,
        username=username,
        email=email or f"{username}@example.com",
        name=username,
        namespace_id=user_id,
        is_admin=is_admin,
    )


def create_mock_project(
    project_id: int = 1,
    name: str = "mock-project",
    namespace: str = "mock-user",
    namespace_id: int | None = 1,
    visibility: str = "private",
) -> Project:
    """Create a Project with sensible defaults."""
    now = datetime.now(timezone.utc)
    return Project(
        id=project_id,
        name=name,
        path_with_namespace=f"{namespace}/{name}",
        default_branch="main",
        visibility=visibility,
        description=name,
        namespace_id=namespace_id,
        created_at=now,
        updated_at=now,
    )


def create_mock_commit(
    sha: str = "a" * 40,
    message: str = "Update files",
    created_at: datetime | None = None,
    parent_ids: list[str] | None = None,
) -> Commit:
    """Create a Commit with sensible defaults."""
    created_at = created_at or datetime.now(timezone.utc)
    return Commit(
        id=sha,
        short_id=sha[:8],
        title=message.split("\n", 1)[0],
        message=message,
        author_name="Mock User",
        author_email="mock-user@example.com",
        created_at=created_at,
        committed_date=created_at,
        parent_ids=parent_ids or [],
    )


def create_mock_merge_request(
    iid: int = 1,
    source_branch: str = "task-1718000000000",
    target_branch: str = "develop",
    state: str = "opened",
    merge_status: str | None = "can_be_merged",
) -> MergeRequest:
    """Create a MergeRequest with sensible defaults."""
    return MergeRequest(
        iid=iid,
        source_branch=source_branch,
        target_branch=target_branch,
        title=f"Merge {source_branch} into {target_branch}",
        description=None,
        state=state,
        merge_status=merge_status,
    )


def create_mock_access_token(
    token_id: int = 1,
    scopes: list[str] | None = None,
    expires_in_days: int = 30,
    revoked: bool = False,
    today: date | None = None,
) -> AccessToken:
    """Create an AccessToken expiring ``expires_in_days`` after ``today``."""
    today = today or datetime.now(timezone.utc).date()
    return AccessToken(
        id=token_id,
        name=f"mock-project-{token_id:06d}",
        scopes=scopes if scopes is not None else ["read_repository", "write_repository", "read_api"],
        expires_at=today + timedelta(days=expires_in_days),
        revoked=revoked,
        access_level=30,
        active=not revoked,
    )


# ============================================================================
# In-Memory Service Fixtures
# ============================================================================


@pytest.fixture
def gitlab() -> Generator[InMemoryGitLab, None, None]:
    """
    Provide an empty InMemoryGitLab.

    Example:
        ```python
        async def test_my_feature(gitlab):
            project = gitlab.add_project("game")
            await my_function(gitlab, project.id)
            assert gitlab.was_called("commits.create")
        ```
    """
    service = InMemoryGitLab()
    yield service
    service.reset()


@pytest.fixture
def orchestrator_config() -> OrchestratorConfig:
    """Default config without the merge retry delay."""
    return OrchestratorConfig(merge_retry_delay=0)


@pytest.fixture
def orchestrator(gitlab: InMemoryGitLab, orchestrator_config: OrchestratorConfig) -> TaskOrchestrator:
    """Provide a TaskOrchestrator backed by the in-memory service."""
    return TaskOrchestrator(gitlab, orchestrator_config)  # type: ignore[arg-type]


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_user(gitlab: InMemoryGitLab) -> User:
    """A registered user ``alice``."""
    return gitlab.add_user("alice", email="alice@example.com")


@pytest.fixture
def sample_project(gitlab: InMemoryGitLab, sample_user: User) -> Project:
    """A project owned by ``alice`` with ``main`` and ``develop`` at one commit."""
    return gitlab.add_project(
        "game",
        owner=sample_user,
        files={"README.md": "# game\n", "src/index.js": "console.log('hi');\n"},
    )


@pytest.fixture
def sample_access_token() -> AccessToken:
    """An active project access token."""
    return create_mock_access_token()
