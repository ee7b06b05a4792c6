"""Gitbase resource clients."""

from gitbase.clients.branches import BranchesClient, ProtectedBranchesClient
from gitbase.clients.commits import CommitsClient
from gitbase.clients.files import RepositoryFilesClient
from gitbase.clients.issues import IssuesClient
from gitbase.clients.merge_requests import MergeRequestsClient
from gitbase.clients.projects import ProjectsClient
from gitbase.clients.tags import TagsClient
from gitbase.clients.tokens import AccessTokensClient
from gitbase.clients.users import UsersClient

__all__ = [
    "UsersClient",
    "ProjectsClient",
    "BranchesClient",
    "ProtectedBranchesClient",
    "CommitsClient",
    "RepositoryFilesClient",
    "MergeRequestsClient",
    "AccessTokensClient",
    "TagsClient",
    "IssuesClient",
]
