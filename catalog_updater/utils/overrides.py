# utils/overrides.py
"""
Read-only access to the locally maintained override tree:

    <root>/<account>/<repo>/ignore        excludes the repository
    <root>/<account>/<repo>/override.yml  manifest keys merged over publiccode.yml
"""
import os
import logging
from typing import Optional

logger = logging.getLogger(__name__)

IGNORE_MARKER = "ignore"
OVERRIDE_FILENAME = "override.yml"


class OverrideStore:
    def __init__(self, root: str):
        self.root = root

    def override_dir(self, account_login: str, repo_name: str) -> str:
        return os.path.join(self.root, account_login, repo_name)

    def is_ignored(self, account_login: str, repo_name: str) -> bool:
        # Presence only; the marker's content is irrelevant
        return os.path.exists(os.path.join(self.override_dir(account_login, repo_name), IGNORE_MARKER))

    def read_override(self, account_login: str, repo_name: str) -> Optional[str]:
        """Returns the override document text, or None when there is none or it cannot be read."""
        override_path = os.path.join(self.override_dir(account_login, repo_name), OVERRIDE_FILENAME)
        try:
            with open(override_path, 'r', encoding='utf-8') as f:
                return f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read override {override_path}: {e}")
            return None
