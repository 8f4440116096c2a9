# catalog_updater/pipeline.py
"""
Runs the aggregation pipeline: accounts -> repositories -> entries -> catalog.

Everything is sequential. Each account is fully processed, repository by
repository, before the next installation page is requested. Any exception
escaping a step aborts the whole run; nothing is returned in that case.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .accounts import enumerate_accounts
from .catalog import CatalogAssembler
from .collector import collect_repositories
from .enricher import enrich_repository
from .utils.logging_config import get_scoped_logger
from .utils.overrides import OverrideStore

logger = get_scoped_logger(__name__)


def build_catalog(
    installations: Iterable[Tuple[Any, Dict[str, Any]]],
    self_login: str,
    organizations: List[str],
    overrides: OverrideStore,
    logger_instance: Optional[logging.LoggerAdapter] = None
) -> Dict[str, Any]:
    current_logger = logger_instance or logger
    assembler = CatalogAssembler()

    current_logger.info("Checking app installations")
    for context, account in enumerate_accounts(installations, self_login, organizations, current_logger):
        account_logger = get_scoped_logger(__name__, account.login)
        entries = []
        for repo in collect_repositories(context, account, overrides, self_login, account_logger):
            entries.append(enrich_repository(context, account, repo, overrides, account_logger))
        assembler.add_account(account, entries)
        account_logger.info(f"Collected {len(entries)} repositories")

    return assembler.to_dict()
