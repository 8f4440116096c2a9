# catalog_updater/catalog.py
"""
Catalog assembler: collects the enriched repositories of every account into
the final document. No sorting, no deduplication.
"""
from typing import Any, Dict, Iterable, List, Optional

from .models import Account, AccountSection, CatalogEntry


class CatalogAssembler:
    def __init__(self):
        self.account: Optional[AccountSection] = None
        self.organizations: List[AccountSection] = []

    def add_account(self, account: Account, entries: Iterable[CatalogEntry]) -> AccountSection:
        section = AccountSection(account=account, repos=list(entries))
        if account.is_self:
            self.account = section
        else:
            self.organizations.append(section)
        return section

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.account is not None:
            result["account"] = self.account.to_dict()
        result["organizations"] = [section.to_dict() for section in self.organizations]
        return result
