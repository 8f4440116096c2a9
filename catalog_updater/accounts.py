# catalog_updater/accounts.py
"""
Account enumerator: keeps the designated self account and the allow-listed
organizations out of everything the App is installed on.
"""
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .models import (
    ACCOUNT_TYPE_ORGANIZATION, ACCOUNT_TYPE_OTHER, ACCOUNT_TYPE_SELF,
    PROVIDER_TYPE_ORGANIZATION, Account,
)

logger = logging.getLogger(__name__)


def account_from_descriptor(descriptor: Dict[str, Any], self_login: Optional[str], organizations: List[str]) -> Account:
    """Builds an Account from GitHub's raw account object and classifies it."""
    login = descriptor.get("login")
    provider_type = descriptor.get("type")
    if self_login and login == self_login:
        account_type = ACCOUNT_TYPE_SELF
    elif provider_type == PROVIDER_TYPE_ORGANIZATION and login in organizations:
        account_type = ACCOUNT_TYPE_ORGANIZATION
    else:
        account_type = ACCOUNT_TYPE_OTHER
    return Account(
        login=login,
        display_name=descriptor.get("name") or login,
        avatar_url=descriptor.get("avatar_url"),
        profile_url=descriptor.get("html_url"),
        account_type=account_type,
        provider_type=provider_type,
    )


def enumerate_accounts(
    installations: Iterable[Tuple[Any, Dict[str, Any]]],
    self_login: Optional[str],
    organizations: List[str],
    logger_instance: Optional[logging.Logger] = None
) -> Iterator[Tuple[Any, Account]]:
    """
    Lazily yields (context, Account) for the self account and allow-listed
    organizations, in installation order. At most one self account is yielded.
    """
    current_logger = logger_instance or logger
    self_seen = False
    for context, descriptor in installations:
        account = account_from_descriptor(descriptor, self_login, organizations)
        if account.is_self:
            if self_seen:
                current_logger.warning(f"Ignoring another installation on user account @{account.login}")
                continue
            self_seen = True
            current_logger.info(f"Found user account @{account.login}")
        elif account.is_organization:
            current_logger.info(f"Found organization @{account.login}")
        elif account.provider_type == PROVIDER_TYPE_ORGANIZATION:
            current_logger.debug(f"Skipping organization {account.login} according to config")
            continue
        else:
            current_logger.info(f"Skipping account @{account.login} ({account.provider_type}) according to config")
            continue
        yield context, account
