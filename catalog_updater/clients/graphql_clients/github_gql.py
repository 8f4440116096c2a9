# clients/graphql_clients/github_gql.py
"""
GraphQL client and queries for the GitHub lookups the catalog updater needs:
the parent of a forked repository and its most recently committed tag.
Rate limited queries are retried with backoff.
"""
from datetime import datetime, timezone
import logging
from typing import Any, Callable, Dict, List, Optional

from gql import gql, Client
from gql.transport.requests import RequestsHTTPTransport
from gql.transport.exceptions import TransportQueryError

from ...models import ForkLineage, TagInfo
from ...utils.retry_utils import execute_with_retry

logger = logging.getLogger(__name__)

GITHUB_GRAPHQL_ENDPOINT = "https://api.github.com/graphql" # Default, can be overridden for GHES

# Signature of the query executor the lookups below run against.
QueryExecutor = Callable[[str, Dict[str, Any]], Dict[str, Any]]


class GithubGqlRateLimitError(TransportQueryError):
    """Carries the rate limit reset time reported alongside a RATE_LIMITED error."""
    def __init__(self, *args, errors: Optional[List[Dict[str, Any]]] = None, reset_at_iso: Optional[str] = None, **kwargs):
        super().__init__(*args, errors=errors, **kwargs)
        self.reset_at_iso: Optional[str] = reset_at_iso
        self.wait_seconds: Optional[float] = None
        if reset_at_iso:
            try:
                reset_dt = datetime.fromisoformat(reset_at_iso.replace('Z', '+00:00'))
                now_utc = datetime.now(timezone.utc)
                self.wait_seconds = max(0.0, (reset_dt - now_utc).total_seconds())
                logger.info(f"GithubGqlRateLimitError: Calculated wait_seconds: {self.wait_seconds:.2f}s from reset_at: {reset_at_iso}")
            except ValueError:
                logger.warning(f"Could not parse resetAt timestamp from GQL payload: {reset_at_iso}")


FORK_PARENT_QUERY = """
query ForkParent($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    parent {
      name
      owner {
        login
      }
      url
    }
  }
  rateLimit {
    remaining
    resetAt
  }
}
"""

# Annotated tags point at a Tag object rather than a Commit, so both shapes are requested.
LATEST_TAG_QUERY = """
query LatestTag($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    refs(first: 1, refPrefix: "refs/tags/", orderBy: {field: TAG_COMMIT_DATE, direction: DESC}) {
      nodes {
        name
        target {
          ... on Commit {
            committedDate
          }
          ... on Tag {
            target {
              ... on Commit {
                committedDate
              }
            }
          }
        }
      }
    }
  }
  rateLimit {
    remaining
    resetAt
  }
}
"""


def get_github_gql_client(token: str, base_url: Optional[str] = None) -> Client:
    """Creates a GitHub GraphQL client."""
    endpoint: str
    if base_url and base_url.strip(): # If a base_url is provided (likely for GHES)
        cleaned_base_url = base_url.rstrip('/').replace('/api/v3', '').replace('/api/graphql', '').rstrip('/')
        endpoint = f"{cleaned_base_url}/api/graphql"
    else:
        endpoint = GITHUB_GRAPHQL_ENDPOINT

    transport = RequestsHTTPTransport(
        url=endpoint,
        headers={"Authorization": f"Bearer {token}"},
        verify=True,
        retries=3,
    )
    return Client(transport=transport, fetch_schema_from_transport=False)


def safe_get(d, *keys):
    for key in keys:
        if isinstance(d, dict):
            d = d.get(key)
        else:
            return None
    return d


def _is_gql_rate_limited_error(query_error: TransportQueryError) -> bool:
    """
    Checks if a TransportQueryError from the GQL client is due to a GitHub rate limit.
    """
    if not isinstance(query_error, TransportQueryError):
        return False
    if query_error.errors and isinstance(query_error.errors, list):
        for error_detail in query_error.errors:
            if isinstance(error_detail, dict) and error_detail.get('type') == 'RATE_LIMITED':
                return True
    return False


def _get_github_gql_retry_wait_seconds(e: Exception) -> Optional[float]:
    """Extracts wait_seconds from our custom GithubGqlRateLimitError."""
    if isinstance(e, GithubGqlRateLimitError):
        return e.wait_seconds
    return None


def execute_with_rate_limit_retry(
    client: Client,
    query: str,
    variables: Dict[str, Any],
    logger_instance: Optional[logging.Logger] = None,
    max_retries: int = 3,
    initial_delay_seconds: float = 60.0,
    backoff_factor: float = 2.0,
    max_individual_delay_seconds: float = 900.0
) -> Dict[str, Any]:
    """Executes a query, retrying while GitHub answers with RATE_LIMITED errors."""
    current_logger = logger_instance if logger_instance else logger
    document = gql(query)

    def _api_call():
        try:
            return client.execute(document, variable_values=variables)
        except TransportQueryError as query_error:
            if _is_gql_rate_limited_error(query_error):
                reset_at = safe_get(query_error.data, "rateLimit", "resetAt")
                raise GithubGqlRateLimitError(
                    str(query_error), errors=query_error.errors, data=query_error.data, reset_at_iso=reset_at
                ) from query_error
            raise

    return execute_with_retry(
        api_call_func=_api_call,
        is_rate_limit_error_func=lambda e: isinstance(e, GithubGqlRateLimitError),
        get_retry_after_seconds_func=_get_github_gql_retry_wait_seconds,
        max_retries=max_retries,
        initial_delay_seconds=initial_delay_seconds,
        backoff_factor=backoff_factor,
        max_individual_delay_seconds=max_individual_delay_seconds,
        error_logger=current_logger,
        log_context=f"GraphQL query with {variables}"
    )


def fetch_fork_parent(execute: QueryExecutor, owner: str, repo_name: str) -> Optional[ForkLineage]:
    """Returns the parent of a fork, or None when GitHub reports no parent."""
    result = execute(FORK_PARENT_QUERY, {"owner": owner, "name": repo_name})
    parent = safe_get(result, "repository", "parent")
    if not parent:
        return None
    return ForkLineage(
        owner_login=safe_get(parent, "owner", "login"),
        repo_name=parent.get("name"),
        parent_url=parent.get("url"),
    )


def strip_version_prefix(tag_name: str) -> str:
    """'v1.2.0' -> '1.2.0'. Only a single leading 'v' is removed."""
    if tag_name.startswith("v"):
        return tag_name[1:]
    return tag_name


def fetch_latest_tag(execute: QueryExecutor, owner: str, repo_name: str) -> Optional[TagInfo]:
    """Returns the most recently committed tag of a repository, or None without tags."""
    result = execute(LATEST_TAG_QUERY, {"owner": owner, "name": repo_name})
    nodes = safe_get(result, "repository", "refs", "nodes") or []
    if not nodes:
        return None
    node = nodes[0]
    release_date = safe_get(node, "target", "committedDate") or safe_get(node, "target", "target", "committedDate")
    return TagInfo(version=strip_version_prefix(node["name"]), release_date=release_date)
