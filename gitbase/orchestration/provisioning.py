"""
Identity and project provisioning.

Users are matched by email and created on first use; projects are matched by
name within the user's own projects and created on first use together with
the permanent working branch.
"""

import re
import secrets
import string
from collections.abc import Callable
from typing import TYPE_CHECKING

from gitbase.cache import TimedCache
from gitbase.config import OrchestratorConfig
from gitbase.exceptions import AuthorizationError, GitbaseError, MissingResourceError
from gitbase.fanout import gather_outcomes
from gitbase.logging import get_logger, log_branch_operation
from gitbase.naming import now_millis, project_slug
from gitbase.orchestration._errors import InputError, wrap_errors
from gitbase.types.commits import Commit
from gitbase.types.projects import Project, ProjectPage
from gitbase.types.users import User

if TYPE_CHECKING:
    from gitbase.client import GitLabClient

logger = get_logger("orchestration.provisioning")

PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*()"
PASSWORD_LENGTH = 16
VISIBILITIES = ("public", "private")


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def _name_taken(name: str, owned: list[Project]) -> bool:
    slug = project_slug(name)
    return any(
        project.name.lower() == name.lower()
        or project.path_with_namespace.rsplit("/", 1)[-1] == slug
        for project in owned
    )


def pick_username(base: str, taken: set[str], now_ms: int) -> str:
    """
    Choose a free username derived from ``base``.

    Tries ``base``, then ``base1`` .. ``base9``, then ``base_<now_ms>``.
    ``taken`` holds lower-cased usernames.
    """
    for candidate in [base, *(f"{base}{i}" for i in range(1, 10))]:
        if candidate.lower() not in taken:
            return candidate
    return f"{base}_{now_ms}"


class Provisioner:
    """
    Resolves caller identities and their projects.

    Example:
        ```python
        provisioner = Provisioner(client, user_cache=TimedCache(ttl=600))
        user = await provisioner.ensure_user("alice@example.com")
        project = await provisioner.ensure_project(user, "game")
        ```
    """

    def __init__(
        self,
        client: "GitLabClient",
        config: OrchestratorConfig | None = None,
        user_cache: TimedCache[str, User] | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self.client = client
        self.config = config or OrchestratorConfig()
        self.user_cache = user_cache
        self._clock = clock

    async def ensure_user(self, email: str) -> User:
        """
        Return the user registered with ``email``, creating it if needed.

        The username is the local part of the email; when taken, a digit
        1-9 is appended, and after that ``_<epochMillis>``.

        Raises:
            OperationError: ("create or find user") on remote failures
        """
        email = (email or "").strip()
        if "@" not in email:
            raise InputError(f"Invalid email address: {email!r}")
        key = email.lower()
        if self.user_cache is not None:
            cached = self.user_cache.get(key)
            if cached is not None:
                return cached

        with wrap_errors("create or find user", email):
            user = await self._find_user(email)
            if user is None:
                user = await self._create_user(email)

        if self.user_cache is not None:
            self.user_cache.set(key, user)
        return user

    async def _find_user(self, email: str) -> User | None:
        for user in await self.client.users.search(email):
            if (user.email or "").lower() == email.lower():
                return user
        return None

    async def _create_user(self, email: str) -> User:
        base = email.split("@", 1)[0]
        similar = await self.client.users.search(base)
        username = pick_username(base, {u.username.lower() for u in similar}, self._clock())
        user = await self.client.users.create(
            email=email,
            username=username,
            password=generate_password(),
            name=username,
            skip_confirmation=True,
        )
        logger.info("Created user %s for %s", user.username, email)
        return user

    async def ensure_project(
        self,
        user: User,
        name: str,
        description: str | None = None,
    ) -> Project:
        """
        Return the user's project called ``name`` (case-insensitive), creating it if needed.

        A project created earlier as ``<name>-<epochMillis>`` because the path
        was taken counts as a match, so repeated calls converge on one project.
        """
        if not name:
            raise InputError("Project name must not be empty")
        with wrap_errors("create project", name):
            owned = await self._owned_projects(user, name)
            for project in owned:
                if project.name.lower() == name.lower():
                    return project
            suffixed = re.compile(rf"{re.escape(name)}-\d{{13,}}", re.IGNORECASE)
            earlier = [project for project in owned if suffixed.fullmatch(project.name)]
            if earlier:
                return min(earlier, key=lambda project: project.id)
            return await self._create(user, name, description, _name_taken(name, owned))

    async def create_project(
        self,
        user: User,
        name: str,
        description: str | None = None,
    ) -> Project:
        """
        Create a new project for ``user``.

        If the user already owns a project called ``name`` or one with the same
        path, the new project is named ``<name>-<epochMillis>``.
        """
        if not name:
            raise InputError("Project name must not be empty")
        with wrap_errors("create project", name):
            owned = await self._owned_projects(user, name)
            return await self._create(user, name, description, _name_taken(name, owned))

    async def _owned_projects(self, user: User, name: str, per_page: int = 100) -> list[Project]:
        found: dict[int, Project] = {}
        for search in dict.fromkeys([name, project_slug(name)]):
            projects, _ = await self.client.projects.list_for_user(
                user.id, search=search, owned=True, per_page=per_page
            )
            found.update((project.id, project) for project in projects)
        return list(found.values())

    async def _create(
        self,
        user: User,
        name: str,
        description: str | None,
        name_taken: bool,
    ) -> Project:
        final_name = f"{name}-{self._clock()}" if name_taken else name
        project = await self.client.projects.create(
            name=final_name,
            namespace_id=user.namespace_id,
            visibility=self.config.project_visibility,
            description=description or final_name,
            initialize_with_readme=False,
        )
        logger.info("Created project %s for %s", project.path_with_namespace, user.username)

        working = self.config.working_branch
        await self.client.branches.create(project.id, working, self.config.trunk_branch)
        log_branch_operation("create working branch", project.id, working, self.config.trunk_branch)
        return project

    async def get_project(self, user: User, name: str) -> Project:
        """
        Raises:
            MissingResourceError: If the user owns no project called ``name``
        """
        with wrap_errors("get project", name):
            for project in await self._owned_projects(user, name):
                if project.name.lower() == name.lower():
                    return project
        raise MissingResourceError("Project", name)

    async def find_project(self, username: str, name: str) -> Project | None:
        """Look a project up by ``<username>/<name>``; None if it does not exist."""
        try:
            return await self.client.projects.show(f"{username}/{name}")
        except GitbaseError as exc:
            logger.info("Project %s/%s not found: %s", username, name, exc)
            return None

    async def list_user_projects(
        self,
        email: str,
        page: int = 1,
        per_page: int = 10,
    ) -> ProjectPage:
        """
        List the projects a user is a member of, most recently updated first.

        Each project carries its last commit; projects whose history cannot
        be read get ``last_commit=None``.
        """
        if page < 1 or per_page < 1:
            raise InputError("page and per_page must be positive")
        user = await self.ensure_user(email)
        with wrap_errors("list user projects", email):
            projects, total = await self.client.projects.list_for_user(
                user.id,
                membership=True,
                order_by="updated_at",
                sort="desc",
                page=page,
                per_page=per_page,
            )

        last_commits = await gather_outcomes({
            project.id: self._last_commit(project) for project in projects
        })
        for project_id, exc in last_commits.failures.items():
            logger.warning("Could not read last commit of project %s: %s", project_id, exc)
        for project in projects:
            project.last_commit = last_commits.successes.get(project.id)

        return ProjectPage(projects=projects, total=total, has_more=page * per_page < total)

    async def _last_commit(self, project: Project) -> Commit | None:
        ref = project.default_branch or self.config.working_branch
        commits, _ = await self.client.commits.list(project.id, ref_name=ref, per_page=1)
        return commits[0] if commits else None

    async def is_project_owner(self, email: str, project: int | str) -> bool:
        """
        True when the token's user is an admin or the project lives in the
        user's namespace. Lookup failures count as "not the owner".
        """
        try:
            user = await self.ensure_user(email)
            found = await self.client.projects.show(project)
        except GitbaseError as exc:
            logger.warning("Ownership check of %s for %s failed: %s", project, email, exc)
            return False

        try:
            if (await self.client.users.current()).is_admin:
                return True
        except GitbaseError as exc:
            logger.warning("Could not read the current user: %s", exc)

        return found.namespace_id is not None and found.namespace_id == user.namespace_id

    async def update_project_description(
        self, email: str, project: int | str, description: str
    ) -> Project:
        """
        Raises:
            AuthorizationError: If ``email`` does not own the project
        """
        await self._require_owner(email, project)
        with wrap_errors("update project description", str(project)):
            return await self.client.projects.edit(project, description=description)

    async def update_project_visibility(
        self, email: str, project: int | str, visibility: str
    ) -> Project:
        """
        Raises:
            InputError: If ``visibility`` is not "public" or "private"
            AuthorizationError: If ``email`` does not own the project
        """
        if visibility not in VISIBILITIES:
            raise InputError(f"Invalid visibility: {visibility!r}. Must be 'public' or 'private'")
        await self._require_owner(email, project)
        with wrap_errors("update project visibility", str(project)):
            return await self.client.projects.edit(project, visibility=visibility)

    async def get_project_visibility(self, project: int | str) -> str:
        with wrap_errors("get project visibility", str(project)):
            return (await self.client.projects.show(project)).visibility

    async def _require_owner(self, email: str, project: int | str) -> None:
        if not await self.is_project_owner(email, project):
            raise AuthorizationError(
                "FORBIDDEN", f"{email} is not the owner of project {project}", status_code=403
            )
