"""Orchestration settings."""

import os
from dataclasses import dataclass, field

from gitbase.exceptions import ConfigurationError

DEVELOPER_ACCESS_LEVEL = 30


@dataclass
class OrchestratorConfig:
    """Branch names, token policy and timings used by the orchestration layer."""

    working_branch: str = "develop"
    trunk_branch: str = "main"
    project_visibility: str = "private"
    token_lifetime_days: int = 30
    token_scopes: list[str] = field(
        default_factory=lambda: ["read_repository", "write_repository", "read_api"]
    )
    token_access_level: int = DEVELOPER_ACCESS_LEVEL
    max_active_tokens: int | None = 3
    merge_retry_delay: float = 1.0  # seconds before retrying a 422 merge
    task_window_seconds: int = 300  # first-commit window after branch creation
    issue_label: str = "agentic"  # label every listed issue must carry

    def __post_init__(self) -> None:
        if not self.working_branch or not self.trunk_branch:
            raise ConfigurationError("Branch names must not be empty")
        if not self.issue_label:
            raise ConfigurationError("issue_label must not be empty")
        if self.token_lifetime_days <= 0:
            raise ConfigurationError("token_lifetime_days must be positive")
        if self.merge_retry_delay < 0:
            raise ConfigurationError("merge_retry_delay must not be negative")
        if self.project_visibility not in ("private", "internal", "public"):
            raise ConfigurationError(
                f"Invalid project visibility: {self.project_visibility}"
            )

    @classmethod
    def from_env(cls) -> "OrchestratorConfig":
        """
        Build a config from environment variables, falling back to defaults.

        Environment variables:
            GITBASE_WORKING_BRANCH: Permanent integration branch (default: develop)
            GITBASE_TRUNK_BRANCH: Service default branch (default: main)
            GITBASE_PROJECT_VISIBILITY: Visibility of new projects (default: private)
            GITBASE_TOKEN_LIFETIME_DAYS: Access token lifetime (default: 30)
            GITBASE_MAX_ACTIVE_TOKENS: Active token limit, 0 disables it (default: 3)
            GITBASE_MERGE_RETRY_DELAY: Seconds before retrying a merge (default: 1.0)
            GITBASE_ISSUE_LABEL: Label of issues handled by task agents (default: agentic)

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        kwargs: dict = {}
        if "GITBASE_WORKING_BRANCH" in os.environ:
            kwargs["working_branch"] = os.environ["GITBASE_WORKING_BRANCH"]
        if "GITBASE_TRUNK_BRANCH" in os.environ:
            kwargs["trunk_branch"] = os.environ["GITBASE_TRUNK_BRANCH"]
        if "GITBASE_ISSUE_LABEL" in os.environ:
            kwargs["issue_label"] = os.environ["GITBASE_ISSUE_LABEL"]
        if "GITBASE_PROJECT_VISIBILITY" in os.environ:
            kwargs["project_visibility"] = os.environ["GITBASE_PROJECT_VISIBILITY"]
        if "GITBASE_TOKEN_LIFETIME_DAYS" in os.environ:
            kwargs["token_lifetime_days"] = _parse_int("GITBASE_TOKEN_LIFETIME_DAYS")
        if "GITBASE_MAX_ACTIVE_TOKENS" in os.environ:
            kwargs["max_active_tokens"] = _parse_int("GITBASE_MAX_ACTIVE_TOKENS") or None
        if "GITBASE_MERGE_RETRY_DELAY" in os.environ:
            value = os.environ["GITBASE_MERGE_RETRY_DELAY"]
            try:
                kwargs["merge_retry_delay"] = float(value)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid GITBASE_MERGE_RETRY_DELAY: {value}"
                ) from None
        return cls(**kwargs)


def _parse_int(name: str) -> int:
    value = os.environ[name]
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Invalid {name}: {value}. Must be an integer") from None
