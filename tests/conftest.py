from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from github import UnknownObjectException

from catalog_updater.clients.graphql_clients import github_gql
from catalog_updater.models import RepositoryRaw
from catalog_updater.utils.overrides import OverrideStore


def make_repo(name: str, **overrides: Any) -> RepositoryRaw:
    values = dict(
        name=name,
        private=False,
        archived=False,
        stargazers=0,
        forks=0,
        clone_url=f"https://github.com/owner/{name}.git",
        homepage=None,
        description=None,
        license_id=None,
        fork=False,
    )
    values.update(overrides)
    return RepositoryRaw(**values)


def descriptor(login: str, account_type: str = "Organization") -> Dict[str, Any]:
    return {
        "login": login,
        "type": account_type,
        "avatar_url": f"https://avatars.example.com/{login}",
        "html_url": f"https://github.com/{login}",
    }


def tag_node(name: str, committed_date: str) -> Dict[str, Any]:
    return {"name": name, "target": {"committedDate": committed_date}}


class FakeInstallationContext:
    """Stands in for InstallationContext; records every call it receives."""

    def __init__(
        self,
        repos: Optional[List[RepositoryRaw]] = None,
        permissions: Optional[Dict[str, str]] = None,
        files: Optional[Dict[str, str]] = None,
        tags: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        parents: Optional[Dict[str, Optional[Dict[str, Any]]]] = None,
    ):
        self.repos = repos or []
        self.permissions = permissions or {}
        self.files = files or {}
        self.tags = tags or {}
        self.parents = parents or {}
        self.calls: List[tuple] = []

    def iter_repositories(self, account):
        self.calls.append(("list", account.login))
        for repo in self.repos:
            yield repo

    def get_permission(self, owner, repo_name, username):
        self.calls.append(("permission", owner, repo_name, username))
        return self.permissions.get(repo_name, "read")

    def get_raw_file(self, owner, repo_name, path):
        self.calls.append(("file", owner, repo_name, path))
        if repo_name not in self.files:
            raise UnknownObjectException(404, {"message": "Not Found"}, None)
        return self.files[repo_name]

    def execute_query(self, query, variables):
        repo_name = variables["name"]
        if query is github_gql.FORK_PARENT_QUERY:
            self.calls.append(("parent", variables["owner"], repo_name))
            return {"repository": {"parent": self.parents.get(repo_name)}}
        if query is github_gql.LATEST_TAG_QUERY:
            self.calls.append(("tag", variables["owner"], repo_name))
            nodes = self.tags.get(repo_name, [])
            return {"repository": {"refs": {"nodes": nodes[:1]}}}
        raise AssertionError(f"unexpected query for {repo_name}")


@pytest.fixture
def overrides_root(tmp_path: Path) -> Path:
    root = tmp_path / "overrides"
    root.mkdir()
    return root


@pytest.fixture
def override_store(overrides_root: Path) -> OverrideStore:
    return OverrideStore(str(overrides_root))


def write_override(root: Path, account: str, repo: str, filename: str, content: str = "") -> Path:
    directory = root / account / repo
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_text(content, encoding="utf-8")
    return path
