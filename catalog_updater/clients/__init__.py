# In clients/__init__.py
class CriticalConnectorError(Exception):
    """Indicates a critical, non-recoverable error within a connector; aborts the run."""
    pass


class FatalLineageError(CriticalConnectorError):
    """The parent of a forked repository could not be resolved."""

    def __init__(self, owner: str, repo_name: str, reason: str):
        super().__init__(f"Could not resolve the parent of fork {owner}/{repo_name}: {reason}")
        self.owner = owner
        self.repo_name = repo_name
        self.reason = reason


class UnreadableContentError(OSError):
    """GitHub returned a file without inline content (files over 1 MB)."""
    pass
