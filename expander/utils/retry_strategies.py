"""
Retry strategies for provider calls.

Exponential backoff via tenacity, applied only to transient transport errors.
"""

import logging
from typing import Optional

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from expander.llm.errors import ProviderTransportError

logger = logging.getLogger(__name__)

# HTTP status codes that indicate a transient server-side problem.
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504, 529})


class RetryConfig:
    """Configuration for retry strategies."""

    def __init__(
        self,
        max_attempts: int = 4,
        initial_delay: float = 2.0,
        max_delay: float = 60.0,
    ):
        """
        Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts, including the first call
            initial_delay: Initial delay in seconds
            max_delay: Maximum delay in seconds
        """
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_delay = max_delay


def is_retryable(exc: BaseException) -> bool:
    """Return True if *exc* is a transport error worth retrying."""
    return isinstance(exc, ProviderTransportError) and exc.retryable


def create_provider_retry(config: Optional[RetryConfig] = None):
    """
    Create a tenacity retry decorator for provider calls.

    Works on coroutine functions. Configuration errors and non-retryable
    transport errors propagate on the first occurrence.

    Args:
        config: Retry configuration (uses defaults if None)

    Returns:
        Retry decorator
    """
    if config is None:
        config = RetryConfig()

    return retry(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential_jitter(initial=config.initial_delay, max=config.max_delay),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
