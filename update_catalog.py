# update_catalog.py
"""
Main script of the software catalog updater.

Walks the installations of the configured GitHub App, collects the public
repositories of the self account and the allow-listed organizations, enriches
them with fork, tag and publiccode.yml metadata, and writes the result to
<OutputDir>/index.json. A run either writes the whole catalog or nothing.
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

from catalog_updater.clients import CriticalConnectorError
from catalog_updater.clients.github_connector import iter_installations
from catalog_updater.pipeline import build_catalog
from catalog_updater.utils.config import Config, ConfigurationError
from catalog_updater.utils.logging_config import setup_global_logging
from catalog_updater.utils.overrides import OverrideStore
from catalog_updater.utils.script_utils import format_duration, reset_output_dir, write_json_file

ANSI_RED = "\x1b[31;1m"
ANSI_GREEN = "\x1b[32;1m"
ANSI_RESET = "\x1b[0m"


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Software catalog updater for GitHub App installations")
    parser.add_argument("--account", help="Login of the user account (overrides GITHUB_ACCOUNT).")
    parser.add_argument("--orgs", help="Comma-separated organizations to include (overrides GITHUB_ORGANIZATIONS).")
    parser.add_argument("--app-id", help="GitHub App id (overrides GITHUB_APP_ID).")
    parser.add_argument("--private-key-path", help="Path to the GitHub App private key PEM file.")
    parser.add_argument("--github-url", help="Base URL of a GitHub Enterprise Server instance.")
    parser.add_argument("--output-dir", help="Directory the catalog is written to (cleared on every run).")
    parser.add_argument("--overrides-dir", help="Root of the per-repository override tree.")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...).")
    return parser


def apply_cli_overrides(cfg: Config, args: argparse.Namespace) -> Config:
    if args.account:
        cfg.ACCOUNT = args.account.strip()
    if args.orgs is not None:
        cfg.ORGANIZATIONS = [org.strip() for org in args.orgs.split(',') if org.strip()]
    if args.app_id:
        cfg.GITHUB_APP_ID = args.app_id.strip()
    if args.private_key_path:
        cfg.GITHUB_APP_PRIVATE_KEY_PATH = args.private_key_path
        cfg.GITHUB_APP_PRIVATE_KEY = None
    if args.github_url:
        cfg.GITHUB_API_URL = args.github_url
    if args.output_dir:
        cfg.OUTPUT_DIR = args.output_dir
    if args.overrides_dir:
        cfg.OVERRIDES_DIR = args.overrides_dir
    if args.log_level:
        cfg.LOG_LEVEL = args.log_level.upper()
    return cfg


def run(cfg: Config, main_logger: logging.Logger) -> bool:
    """Runs one full update. Returns True when the catalog was written."""
    problems = cfg.validate()
    if problems:
        for problem in problems:
            main_logger.error(f"Configuration error: {problem}")
        return False

    reset_output_dir(cfg.OUTPUT_DIR)

    try:
        private_key = cfg.load_private_key()
        installations = iter_installations(
            app_id=int(cfg.GITHUB_APP_ID),
            private_key=private_key,
            github_instance_url=cfg.GITHUB_API_URL,
            gql_retry_settings={
                "max_retries": cfg.GITHUB_GQL_MAX_RETRIES,
                "initial_delay_seconds": cfg.GITHUB_GQL_INITIAL_RETRY_DELAY,
                "backoff_factor": cfg.GITHUB_GQL_RETRY_BACKOFF_FACTOR,
                "max_individual_delay_seconds": cfg.GITHUB_GQL_MAX_INDIVIDUAL_RETRY_DELAY,
            },
        )
        catalog = build_catalog(
            installations,
            self_login=cfg.ACCOUNT,
            organizations=cfg.ORGANIZATIONS,
            overrides=OverrideStore(cfg.OVERRIDES_DIR),
        )
    except (ConfigurationError, CriticalConnectorError) as e:
        main_logger.critical(f"{ANSI_RED}Updater aborted: {e}{ANSI_RESET}")
        return False
    except Exception as e:
        main_logger.critical(f"{ANSI_RED}Updater aborted by an unexpected error: {e}{ANSI_RESET}", exc_info=True)
        return False

    main_logger.info(f"{ANSI_GREEN}Updater finished{ANSI_RESET}")
    main_logger.info("Writing results")
    return write_json_file(catalog, cfg.catalog_filepath)


def main_cli(argv: Optional[List[str]] = None):
    script_start_time = time.time()

    args = _build_arg_parser().parse_args(argv)
    cfg = apply_cli_overrides(Config(), args)
    setup_global_logging(cfg.effective_log_level, cfg.LOG_FILE)
    main_logger = logging.getLogger("updater")

    main_logger.info("Updater started")
    main_logger.info(f"User account: {cfg.ACCOUNT or '(not set)'}; organizations: {', '.join(cfg.ORGANIZATIONS) or '(none)'}")

    success = run(cfg, main_logger)

    formatted_duration = format_duration(time.time() - script_start_time)
    main_logger.info(f"Total script execution time: {formatted_duration}.")
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main_cli()
