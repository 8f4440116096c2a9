# utils/logging_config.py
import logging
import os
import sys
from typing import Optional

DEFAULT_SCOPE = "updater"
LOG_FORMAT = '%(asctime)s - [%(scope)s] - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'

# Third-party loggers that are too chatty at INFO.
NOISY_LOGGERS = ("gql.transport.requests", "urllib3", "github.Requester")


class ContextualLogFormatter(logging.Formatter):
    def format(self, record):
        # Records logged without an account scope belong to the updater itself
        if not getattr(record, 'scope', None):
            record.scope = DEFAULT_SCOPE
        return super().format(record)


def setup_global_logging(log_level_str: str = "INFO", log_file: Optional[str] = None, stream=None):
    """
    Configures the root logger with the contextual formatter.

    Logs go to stderr so that stdout stays free; a file handler is added when
    log_file is given.
    """
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)
    formatter = ContextualLogFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to prevent duplicate messages if this setup is called multiple times
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            logging.error(f"Failed to set up file handler for {log_file}: {e}")

    for noisy_logger in NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(f"Logging configured at level {logging.getLevelName(log_level)}.")


def get_scoped_logger(name: str, scope: str = DEFAULT_SCOPE) -> logging.LoggerAdapter:
    """Returns an adapter that tags every record with the given scope (usually an account login)."""
    return logging.LoggerAdapter(logging.getLogger(name), {'scope': scope})
