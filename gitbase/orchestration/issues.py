"""
Issue reads and label updates.

Only issues labelled with the configured issue label (``agentic`` by
default) are listed; they are the ones task agents work on.
"""

from typing import TYPE_CHECKING

from gitbase.config import OrchestratorConfig
from gitbase.exceptions import MissingResourceError, NotFoundError
from gitbase.logging import get_logger
from gitbase.orchestration._errors import InputError, wrap_errors
from gitbase.types.issues import Issue, IssuePage

if TYPE_CHECKING:
    from gitbase.client import GitLabClient

logger = get_logger("orchestration.issues")

ISSUE_STATES = ("opened", "closed", "all")


class IssueManager:
    """
    Lists a project's agent issues and edits their labels.

    Example:
        ```python
        issues = IssueManager(client)
        page = await issues.list_project_issues("alice/game", additional_label="bug")
        await issues.update_issue_labels("alice/game", page.issues[0].iid, ["agentic", "done"])
        ```
    """

    def __init__(self, client: "GitLabClient", config: OrchestratorConfig | None = None) -> None:
        self.client = client
        self.config = config or OrchestratorConfig()

    async def list_project_issues(
        self,
        project: int | str,
        page: int = 1,
        per_page: int = 20,
        state: str = "opened",
        additional_label: str | None = None,
    ) -> IssuePage:
        """
        List one page of issues carrying the issue label, oldest first.

        Args:
            project: Project id or path
            page: Page number (1-indexed)
            per_page: Page size
            state: "opened", "closed" or "all"
            additional_label: A second label the issues must also carry

        Returns:
            IssuePage whose ``total`` comes from the X-Total header

        Raises:
            InputError: On invalid paging or state
            OperationError: If the issues cannot be read
        """
        if page < 1 or per_page < 1:
            raise InputError("page and per_page must be positive")
        if state not in ISSUE_STATES:
            raise InputError(f"Invalid issue state: {state!r}")

        labels = [self.config.issue_label]
        if additional_label:
            labels.append(additional_label)

        with wrap_errors("list issues", str(project)):
            issues, total = await self.client.issues.list(
                project,
                state=state,
                labels=labels,
                order_by="created_at",
                sort="asc",
                page=page,
                per_page=per_page,
            )
        return IssuePage(issues=issues, total=total, has_more=page * per_page < total)

    async def get_issue(self, project: int | str, iid: int) -> Issue:
        """
        Raises:
            MissingResourceError: If the issue does not exist
        """
        with wrap_errors("get issue", f"{project}#{iid}"):
            try:
                return await self.client.issues.show(project, iid)
            except NotFoundError:
                raise MissingResourceError("Issue", f"#{iid}") from None

    async def update_issue_labels(self, project: int | str, iid: int, labels: list[str]) -> Issue:
        """
        Replace an issue's labels.

        Raises:
            MissingResourceError: If the issue does not exist
        """
        with wrap_errors("update issue labels", f"{project}#{iid}"):
            try:
                issue = await self.client.issues.edit(project, iid, labels=list(labels))
            except NotFoundError:
                raise MissingResourceError("Issue", f"#{iid}") from None
        logger.info("Set labels of #%s in %s to %s", iid, project, ", ".join(labels) or "(none)")
        return issue
