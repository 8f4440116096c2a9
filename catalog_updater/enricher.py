# catalog_updater/enricher.py
"""
Metadata enricher: turns one collected repository into a catalog entry.

The entry combines the repository's own facts, its fork parent, its latest tag
and its publiccode.yml manifest with the local override merged on top.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

import yaml
from github import GithubException
from gql.transport.exceptions import TransportError

from .clients import FatalLineageError
from .clients.graphql_clients import github_gql
from .models import (
    DEFAULT_DESCRIPTION_LANGUAGE, DEVELOPMENT_STATUS_OBSOLETE,
    Account, CatalogEntry, ForkLineage, RepoMeta, RepositoryRaw,
)
from .utils.overrides import OverrideStore
from .utils.script_utils import dump_catalog_json

logger = logging.getLogger(__name__)

MANIFEST_PATH = "publiccode.yml"


def _json_safe_keys(node: Any) -> Any:
    # YAML turns unquoted date keys into date objects; JSON object keys must be strings
    if isinstance(node, dict):
        return {
            (key.isoformat() if isinstance(key, (datetime, date)) else key): _json_safe_keys(value)
            for key, value in node.items()
        }
    if isinstance(node, list):
        return [_json_safe_keys(item) for item in node]
    return node


def parse_manifest(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Parses a YAML manifest. Anything but a mapping counts as no manifest, and
    so does a document the catalog could not render as JSON.
    """
    if text is None:
        return None
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.debug(f"Manifest is not valid YAML: {e}")
        return None
    if not isinstance(document, dict):
        return None
    document = _json_safe_keys(document)
    try:
        dump_catalog_json(document)
    except (TypeError, ValueError) as e:
        logger.debug(f"Manifest cannot be rendered as JSON: {e}")
        return None
    return document


def merge_manifests(remote: Optional[Dict[str, Any]], override: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Shallow merge, override keys win. None when neither source exists."""
    if remote is None and override is None:
        return None
    merged: Dict[str, Any] = {}
    merged.update(remote or {})
    merged.update(override or {})
    return merged


def is_variant(repo: RepositoryRaw, manifest: Dict[str, Any]) -> bool:
    """
    A fork is a variant when its manifest declares the fork's own clone URL as
    the canonical url. Any other repository is a variant when its manifest
    declares what it is based on.
    """
    if repo.fork:
        return manifest.get("url") == repo.clone_url
    return bool(manifest.get("isBasedOn"))


def resolve_fork_lineage(context: Any, account: Account, repo: RepositoryRaw) -> ForkLineage:
    try:
        lineage = github_gql.fetch_fork_parent(context.execute_query, account.login, repo.name)
    except (TransportError, GithubException) as e:
        raise FatalLineageError(account.login, repo.name, str(e)) from e
    if lineage is None:
        raise FatalLineageError(account.login, repo.name, "GitHub reported no parent")
    return lineage


def fetch_remote_manifest(context: Any, account: Account, repo_name: str, logger_instance: logging.Logger) -> Optional[Dict[str, Any]]:
    logger_instance.debug(f"Looking for manifest in repository {repo_name}")
    try:
        text = context.get_raw_file(account.login, repo_name, MANIFEST_PATH)
    except (GithubException, OSError, UnicodeDecodeError) as e:
        logger_instance.debug(f"No manifest found in repository {repo_name} ({getattr(e, 'status', e)})")
        return None
    manifest = parse_manifest(text)
    if manifest is None:
        logger_instance.debug(f"Manifest of repository {repo_name} could not be used")
    return manifest


def load_override_manifest(overrides: OverrideStore, account: Account, repo_name: str, logger_instance: logging.Logger) -> Optional[Dict[str, Any]]:
    manifest = parse_manifest(overrides.read_override(account.login, repo_name))
    if manifest is not None:
        logger_instance.debug(f"Found override for repository {repo_name}")
    return manifest


def enrich_repository(
    context: Any,
    account: Account,
    repo: RepositoryRaw,
    overrides: OverrideStore,
    logger_instance: Optional[logging.Logger] = None
) -> CatalogEntry:
    current_logger = logger_instance or logger
    repo_name = repo.name

    entry = CatalogEntry(
        meta=RepoMeta(
            name=repo_name,
            is_archived=repo.archived,
            stargazers=repo.stargazers,
            forks=repo.forks,
        ),
        url=repo.clone_url,
        description=repo.description,
    )

    if repo.homepage:
        entry.landing_url = repo.homepage

    if repo.fork:
        current_logger.debug(f"Checking parent of repository {repo_name}")
        lineage = resolve_fork_lineage(context, account, repo)
        entry.meta.fork_of = lineage
        entry.is_based_on = lineage.parent_clone_url

    current_logger.debug(f"Checking tags of repository {repo_name}")
    tag = github_gql.fetch_latest_tag(context.execute_query, account.login, repo_name)
    if tag:
        entry.software_version = tag.version
        if tag.release_date:
            entry.release_date = tag.release_date

    if repo.description:
        entry.description = {DEFAULT_DESCRIPTION_LANGUAGE: {"shortDescription": repo.description}}

    if repo.license_id:
        entry.legal = {"license": repo.license_id}

    remote_manifest = fetch_remote_manifest(context, account, repo_name, current_logger)
    override_manifest = load_override_manifest(overrides, account, repo_name, current_logger)
    manifest = merge_manifests(remote_manifest, override_manifest)

    if manifest is not None:
        skipped_keys = entry.apply_manifest(manifest)
        if skipped_keys:
            current_logger.warning(f"Ignoring reserved manifest keys {skipped_keys} of repository {repo_name}")
        entry.meta.is_variant = is_variant(repo, manifest)

    if repo.archived:
        entry.development_status = DEVELOPMENT_STATUS_OBSOLETE

    return entry
