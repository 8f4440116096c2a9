# utils/retry_utils.py
import time
import logging
import random
from typing import Callable, Optional, Any

logger = logging.getLogger(__name__)

def compute_retry_delay(
    attempt: int,
    initial_delay_seconds: float,
    backoff_factor: float,
    max_individual_delay_seconds: float,
    retry_after: Optional[float] = None,
    jitter_ratio: float = 0.1
) -> float:
    """Exponential backoff, or the server supplied wait when known, with jitter and a cap."""
    delay = retry_after if retry_after is not None else initial_delay_seconds * (backoff_factor ** attempt)
    jitter = delay * jitter_ratio
    return max(0.0, min(delay + random.uniform(-jitter, jitter), max_individual_delay_seconds))

def execute_with_retry(
    api_call_func: Callable[[], Any],
    is_rate_limit_error_func: Callable[[Exception], bool],
    get_retry_after_seconds_func: Optional[Callable[[Exception], Optional[float]]] = None,
    max_retries: int = 3,
    initial_delay_seconds: float = 10.0,
    backoff_factor: float = 2.0,
    max_individual_delay_seconds: float = 900.0,
    error_logger: Optional[logging.Logger] = None,
    log_context: str = "",
    sleep_func: Optional[Callable[[float], None]] = None
) -> Any:
    """
    Executes a function, retrying only on rate limit errors.
    Any other exception, or a rate limit error after the last retry, propagates.
    """
    current_logger = error_logger if error_logger else logger
    for attempt in range(max_retries + 1):
        try:
            return api_call_func()
        except Exception as e:
            if not is_rate_limit_error_func(e):
                raise
            current_logger.warning(f"RATE LIMIT detected on attempt {attempt + 1} for {log_context}. Error: {str(e)[:200]}")
            if attempt >= max_retries:
                current_logger.error(f"RATE LIMIT: Max retries ({max_retries}) reached for {log_context}. Propagating error.")
                raise
            retry_after = get_retry_after_seconds_func(e) if get_retry_after_seconds_func else None
            delay = compute_retry_delay(
                attempt, initial_delay_seconds, backoff_factor, max_individual_delay_seconds, retry_after
            )
            current_logger.info(f"Rate limit: Will retry {log_context} after {delay:.2f}s (Retry {attempt + 1}/{max_retries}).")
            (sleep_func or time.sleep)(delay)
