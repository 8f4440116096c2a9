# catalog_updater/models.py
"""
Data structures passed between the account enumerator, the repository
collector, the metadata enricher and the catalog assembler.

Everything here is built fresh on every run and serialized once at the end.
Serialization order is fixed so that unchanged upstream state always renders
the same JSON document.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ACCOUNT_TYPE_SELF = "self"
ACCOUNT_TYPE_ORGANIZATION = "organization"
ACCOUNT_TYPE_OTHER = "other"

PROVIDER_TYPE_USER = "User"
PROVIDER_TYPE_ORGANIZATION = "Organization"

DEVELOPMENT_STATUS_OBSOLETE = "obsolete"
DEFAULT_DESCRIPTION_LANGUAGE = "en"

# Manifest keys that never replace provider-derived data.
RESERVED_ENTRY_KEYS = ("meta",)


class _Unset:
    """Marks an optional catalog entry key that nothing has set, as opposed to an explicit null."""

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


@dataclass
class Account:
    login: str
    display_name: Optional[str]
    avatar_url: Optional[str]
    profile_url: Optional[str]
    account_type: str = ACCOUNT_TYPE_OTHER
    provider_type: Optional[str] = None

    @property
    def is_self(self) -> bool:
        return self.account_type == ACCOUNT_TYPE_SELF

    @property
    def is_organization(self) -> bool:
        return self.account_type == ACCOUNT_TYPE_ORGANIZATION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.login,
            "avatar": self.avatar_url,
            "url": self.profile_url,
        }


@dataclass
class RepositoryRaw:
    """Provider-side facts about a repository, as returned by the listing."""
    name: str
    private: bool
    archived: bool
    stargazers: int
    forks: int
    clone_url: str
    homepage: Optional[str] = None
    description: Optional[str] = None
    license_id: Optional[str] = None
    fork: bool = False


@dataclass
class ForkLineage:
    owner_login: str
    repo_name: str
    parent_url: str

    @property
    def parent_clone_url(self) -> str:
        return f"{self.parent_url}.git"


@dataclass
class TagInfo:
    version: str
    release_date: Optional[str] = None


@dataclass
class RepoMeta:
    name: str
    fork_of: Optional[ForkLineage] = None
    is_variant: bool = False
    is_archived: bool = False
    stargazers: int = 0
    forks: int = 0

    def to_dict(self) -> Dict[str, Any]:
        fork_of = None
        if self.fork_of:
            fork_of = {"owner": self.fork_of.owner_login, "name": self.fork_of.repo_name}
        return {
            "name": self.name,
            "forkOf": fork_of,
            "isVariant": self.is_variant,
            "isArchived": self.is_archived,
            "stargazers": self.stargazers,
            "forks": self.forks,
        }


@dataclass
class CatalogEntry:
    """
    One repository in the catalog.

    Provider-derived values live in typed fields. A merged manifest is applied
    with apply_manifest(): values for known keys replace the typed field, every
    other key is kept in 'extra' in document order.
    """
    meta: RepoMeta
    url: Optional[str] = None
    description: Any = None
    landing_url: Any = UNSET
    is_based_on: Any = UNSET
    software_version: Any = UNSET
    release_date: Any = UNSET
    development_status: Any = UNSET
    legal: Any = UNSET
    extra: Dict[str, Any] = field(default_factory=dict)

    _FIELD_BY_KEY = {
        "url": "url",
        "description": "description",
        "landingURL": "landing_url",
        "isBasedOn": "is_based_on",
        "softwareVersion": "software_version",
        "releaseDate": "release_date",
        "developmentStatus": "development_status",
        "legal": "legal",
    }

    def apply_manifest(self, manifest: Dict[str, Any]) -> List[str]:
        """Applies a merged manifest on top of this entry. Returns skipped reserved keys."""
        skipped = []
        for key, value in manifest.items():
            if key in RESERVED_ENTRY_KEYS:
                skipped.append(key)
            elif key in self._FIELD_BY_KEY:
                setattr(self, self._FIELD_BY_KEY[key], value)
            else:
                self.extra[key] = value
        return skipped

    def to_dict(self) -> Dict[str, Any]:
        # 'description' is always present, the other optional keys only once set.
        # An explicit null from a manifest counts as set.
        data: Dict[str, Any] = {
            "meta": self.meta.to_dict(),
            "url": self.url,
            "description": self.description,
        }
        optional = (
            ("landingURL", self.landing_url),
            ("isBasedOn", self.is_based_on),
            ("softwareVersion", self.software_version),
            ("releaseDate", self.release_date),
            ("developmentStatus", self.development_status),
            ("legal", self.legal),
        )
        for key, value in optional:
            if value is not UNSET:
                data[key] = value
        for key, value in self.extra.items():
            data[key] = value
        return data


@dataclass
class AccountSection:
    account: Account
    repos: List[CatalogEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = self.account.to_dict()
        data["repos"] = [entry.to_dict() for entry in self.repos]
        return data
