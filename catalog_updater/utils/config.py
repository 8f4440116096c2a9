# utils/config.py
"""
Configuration class for the software catalog updater.
Loads settings from environment variables (and a .env file when present).
"""
import os
import logging
from dotenv import load_dotenv
from typing import List, Optional

logger = logging.getLogger(__name__)

PLACEHOLDER_PRIVATE_KEY = "YOUR_GITHUB_APP_PRIVATE_KEY"


class ConfigurationError(Exception):
    """Raised when the configuration cannot support a run."""
    pass


def env_to_list(key: str, default: Optional[List[str]] = None) -> List[str]:
    """Splits a comma separated environment variable, trimming blanks."""
    raw_value = os.getenv(key)
    if raw_value is None or not raw_value.strip():
        return list(default or [])
    return [item.strip() for item in raw_value.split(',') if item.strip()]


def _env_number(key: str, default: str, cast):
    raw_value = os.getenv(key, default).strip()
    try:
        return cast(raw_value)
    except ValueError:
        logger.warning(f"Invalid {key}: '{raw_value}'. Defaulting to {default}.")
        return cast(default)


class Config:
    """
    Configuration class to hold and validate configuration settings.
    """
    def __init__(self, load_env_file: bool = True):
        if load_env_file:
            load_dotenv()

        # --- Accounts ---
        self.ACCOUNT = os.getenv("GITHUB_ACCOUNT", "").strip() or None
        self.ORGANIZATIONS = env_to_list("GITHUB_ORGANIZATIONS")

        # --- GitHub App credentials ---
        self.GITHUB_APP_ID = os.getenv("GITHUB_APP_ID", "").strip() or None
        self.GITHUB_APP_PRIVATE_KEY_PATH = os.getenv("GITHUB_APP_PRIVATE_KEY_PATH", "").strip() or None
        inline_key = os.getenv("GITHUB_APP_PRIVATE_KEY")
        # Keys stored on a single line in .env files carry escaped newlines
        self.GITHUB_APP_PRIVATE_KEY = inline_key.replace("\\n", "\n") if inline_key else None
        self.GITHUB_API_URL = os.getenv("GITHUB_API_URL", "").strip() or None

        # --- Files and directories ---
        self.OUTPUT_DIR = os.getenv("OutputDir", "output").strip()
        self.CATALOG_JSON_FILE = os.getenv("catalogJsonFile", "index.json").strip()
        self.OVERRIDES_DIR = os.getenv("OverridesDir", "overrides").strip()
        self.LOG_FILE = os.getenv("LOG_FILE", "").strip() or None

        # --- Logging ---
        self.ENVIRONMENT = os.getenv("UPDATER_ENV", "production").strip().lower()
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()

        # --- GraphQL rate limit retries ---
        self.GITHUB_GQL_MAX_RETRIES = _env_number("GITHUB_GQL_MAX_RETRIES", "3", int)
        self.GITHUB_GQL_INITIAL_RETRY_DELAY = _env_number("GITHUB_GQL_INITIAL_RETRY_DELAY", "60", float)
        self.GITHUB_GQL_RETRY_BACKOFF_FACTOR = _env_number("GITHUB_GQL_RETRY_BACKOFF_FACTOR", "2", float)
        self.GITHUB_GQL_MAX_INDIVIDUAL_RETRY_DELAY = _env_number("GITHUB_GQL_MAX_INDIVIDUAL_RETRY_DELAY", "900", float)

    @property
    def effective_log_level(self) -> str:
        """Debug output is reserved for development runs or an explicit DEBUG level."""
        if self.ENVIRONMENT == "development":
            return "DEBUG"
        return self.LOG_LEVEL

    @property
    def catalog_filepath(self) -> str:
        return os.path.join(self.OUTPUT_DIR, self.CATALOG_JSON_FILE)

    def load_private_key(self) -> Optional[str]:
        """Returns the App private key, preferring the inline value over the key file."""
        if self.GITHUB_APP_PRIVATE_KEY:
            return self.GITHUB_APP_PRIVATE_KEY
        if self.GITHUB_APP_PRIVATE_KEY_PATH:
            try:
                with open(self.GITHUB_APP_PRIVATE_KEY_PATH, 'r', encoding='utf-8') as f:
                    return f.read()
            except OSError as e:
                raise ConfigurationError(
                    f"Cannot read GitHub App private key from {self.GITHUB_APP_PRIVATE_KEY_PATH}: {e}"
                ) from e
        return None

    def validate(self) -> List[str]:
        """Returns a list of configuration problems; empty when the run can start."""
        problems = []
        if not self.ACCOUNT:
            problems.append("GITHUB_ACCOUNT is not set.")
        if not self.GITHUB_APP_ID:
            problems.append("GITHUB_APP_ID is not set.")
        elif not self.GITHUB_APP_ID.isdigit():
            problems.append(f"GITHUB_APP_ID must be numeric, got '{self.GITHUB_APP_ID}'.")
        if not self.GITHUB_APP_PRIVATE_KEY and not self.GITHUB_APP_PRIVATE_KEY_PATH:
            problems.append("Neither GITHUB_APP_PRIVATE_KEY nor GITHUB_APP_PRIVATE_KEY_PATH is set.")
        elif self.GITHUB_APP_PRIVATE_KEY and self.GITHUB_APP_PRIVATE_KEY.strip() == PLACEHOLDER_PRIVATE_KEY:
            problems.append("GITHUB_APP_PRIVATE_KEY is a placeholder.")
        return problems
