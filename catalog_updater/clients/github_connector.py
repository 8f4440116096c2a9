# clients/github_connector.py
"""
GitHub connector for the software catalog updater.

Authenticates as a GitHub App, walks its installations and hands out one
InstallationContext per installation. A context wraps an installation-scoped
PyGithub client (repository listing, permission lookups, file contents) and
runs GraphQL queries through the gql client. Everything is lazy: pages are
fetched from GitHub only while the caller iterates.
"""

import logging
from typing import Any, Dict, Iterator, Optional, Tuple

from github import Auth, Github, GithubIntegration

from ..models import PROVIDER_TYPE_ORGANIZATION, Account, RepositoryRaw
from . import UnreadableContentError
from .graphql_clients import github_gql

logger = logging.getLogger(__name__)

DEFAULT_GITHUB_API_URL = "https://api.github.com"
REQUEST_TIMEOUT_SECONDS = 30


def _rest_base_url(github_instance_url: Optional[str]) -> str:
    """REST base URL; GitHub Enterprise instances serve the API under /api/v3."""
    if not github_instance_url:
        return DEFAULT_GITHUB_API_URL
    base = github_instance_url.rstrip('/')
    return base if base.endswith("/api/v3") else base + "/api/v3"


def _graphql_base_url(github_instance_url: Optional[str]) -> Optional[str]:
    if not github_instance_url:
        return None
    base = github_instance_url.rstrip('/')
    if base.endswith("/api/v3"):
        base = base[:-len("/api/v3")]
    return base


def repository_from_github(repo: Any) -> RepositoryRaw:
    """Maps a PyGithub Repository (as returned by the listing) to RepositoryRaw."""
    license_obj = getattr(repo, "license", None)
    return RepositoryRaw(
        name=repo.name,
        private=bool(repo.private),
        archived=bool(repo.archived),
        stargazers=repo.stargazers_count or 0,
        forks=repo.forks_count or 0,
        clone_url=repo.clone_url,
        homepage=repo.homepage or None,
        description=repo.description,
        license_id=getattr(license_obj, "spdx_id", None) if license_obj else None,
        fork=bool(repo.fork),
    )


class InstallationContext:
    """
    API access bound to exactly one App installation (and so one account).
    """

    def __init__(
        self,
        github_client: Github,
        token_source: Any,
        github_instance_url: Optional[str] = None,
        gql_retry_settings: Optional[Dict[str, float]] = None,
        logger_instance: Optional[logging.Logger] = None
    ):
        self._github = github_client
        self._token_source = token_source # anything exposing a fresh '.token'
        self._graphql_base_url = _graphql_base_url(github_instance_url)
        self._gql_retry_settings = gql_retry_settings or {}
        self._logger = logger_instance or logger

    def iter_repositories(self, account: Account) -> Iterator[RepositoryRaw]:
        """Lists the account's repositories page by page, in GitHub's order."""
        if account.provider_type == PROVIDER_TYPE_ORGANIZATION:
            paginated_repos = self._github.get_organization(account.login).get_repos()
        else:
            paginated_repos = self._github.get_user(account.login).get_repos()
        for repo in paginated_repos:
            yield repository_from_github(repo)

    def get_permission(self, owner: str, repo_name: str, username: str) -> str:
        repo = self._github.get_repo(f"{owner}/{repo_name}", lazy=True)
        return repo.get_collaborator_permission(username)

    def get_raw_file(self, owner: str, repo_name: str, path: str) -> str:
        """
        Returns the text of a file on the default branch.
        Raises GithubException (UnknownObjectException when the file is absent),
        or UnreadableContentError when GitHub does not inline the content.
        """
        repo = self._github.get_repo(f"{owner}/{repo_name}", lazy=True)
        content_file = repo.get_contents(path)
        if isinstance(content_file, list):
            raise IsADirectoryError(f"{owner}/{repo_name}:{path} is a directory")
        if content_file.encoding != "base64":
            raise UnreadableContentError(f"{owner}/{repo_name}:{path} has no inline content (encoding '{content_file.encoding}')")
        return content_file.decoded_content.decode('utf-8')

    def execute_query(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        # A client per query picks up a refreshed installation token on long runs
        client = github_gql.get_github_gql_client(self._token_source.token, self._graphql_base_url)
        return github_gql.execute_with_rate_limit_retry(
            client,
            query,
            variables,
            logger_instance=self._logger,
            **self._gql_retry_settings
        )


def iter_installations(
    app_id: int,
    private_key: str,
    github_instance_url: Optional[str] = None,
    gql_retry_settings: Optional[Dict[str, float]] = None,
    logger_instance: Optional[logging.Logger] = None
) -> Iterator[Tuple[InstallationContext, Dict[str, Any]]]:
    """
    Yields (InstallationContext, account descriptor) for every installation of the App.
    The descriptor is GitHub's raw account object (login, type, avatar_url, html_url).
    """
    current_logger = logger_instance or logger
    base_url = _rest_base_url(github_instance_url)
    app_auth = Auth.AppAuth(int(app_id), private_key)
    integration = GithubIntegration(auth=app_auth, base_url=base_url)

    for installation in integration.get_installations():
        account_descriptor = installation.raw_data.get("account") or {}
        current_logger.debug(f"Installation {installation.id} belongs to {account_descriptor.get('login')}")
        installation_auth = app_auth.get_installation_auth(installation.id)
        github_client = Github(auth=installation_auth, base_url=base_url, timeout=REQUEST_TIMEOUT_SECONDS)
        context = InstallationContext(
            github_client,
            installation_auth,
            github_instance_url=github_instance_url,
            gql_retry_settings=gql_retry_settings,
            logger_instance=current_logger
        )
        yield context, account_descriptor
