# catalog_updater/collector.py
"""
Repository collector: lists an account's repositories and drops the ones that
do not belong in the catalog.
"""
import logging
from typing import Any, Iterator, Optional

from .models import Account, RepositoryRaw
from .utils.overrides import OverrideStore

logger = logging.getLogger(__name__)

WRITE_PERMISSIONS = ("admin", "write")


def has_write_access(permission: Optional[str]) -> bool:
    return permission in WRITE_PERMISSIONS


def collect_repositories(
    context: Any,
    account: Account,
    overrides: OverrideStore,
    permission_username: str,
    logger_instance: Optional[logging.Logger] = None
) -> Iterator[RepositoryRaw]:
    """
    Yields the account's public, non-ignored repositories in listing order.
    On organizations the permission of permission_username must be admin or write;
    it is looked up once per repository.
    """
    current_logger = logger_instance or logger
    current_logger.info("Checking repositories")

    for repo in context.iter_repositories(account):
        repo_name = repo.name

        if repo.private:
            current_logger.debug(f"Skipping private repository {repo_name}")
            continue

        if overrides.is_ignored(account.login, repo_name):
            current_logger.debug(f"Skipping repository {repo_name} as it's ignored")
            continue

        if account.is_organization:
            current_logger.debug(f"Checking permissions of repository {repo_name}")
            permission = context.get_permission(account.login, repo_name, permission_username)
            if not has_write_access(permission):
                current_logger.debug(f"Skipping inaccessible repository {repo_name} (permission: {permission})")
                continue

        current_logger.info(f"Found repository {repo_name}")
        yield repo
