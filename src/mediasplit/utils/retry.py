"""Retry policy for remote source requests (tenacity).

Transport failures and the server-side statuses that usually clear up on
their own (429, 5xx) are retried with exponential backoff and jitter.
Everything else, including 4xx answers, fails on the first attempt.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})

NETWORK_EXCEPTIONS: tuple[type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
    httpx.TransportError,
)


def is_transient(error: BaseException) -> bool:
    """Tell whether ``error`` is worth another attempt."""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in TRANSIENT_STATUS_CODES
    return isinstance(error, NETWORK_EXCEPTIONS)


def retry_with_backoff(
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    jitter: float = 1.0,
    should_retry: Callable[[BaseException], bool] = is_transient,
    logger_instance: logging.Logger | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry decorator with exponential backoff and jitter.

    Args:
        max_retries: Retries after the first attempt (total = max_retries + 1)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        jitter: Maximum random jitter added to each delay
        should_retry: Predicate deciding whether an exception is retried
        logger_instance: Logger for retry warnings (module logger if None)

    Example:
        @retry_with_backoff(max_retries=3, base_delay=0.5)
        def head() -> httpx.Response:
            response = client.head(url)
            response.raise_for_status()
            return response
    """
    if max_retries < 0:
        raise ValueError("max_retries must be >= 0")

    return retry(
        reraise=True,
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential_jitter(initial=base_delay, max=max_delay, jitter=jitter),
        retry=retry_if_exception(should_retry),
        before_sleep=before_sleep_log(logger_instance or logger, logging.WARNING),
    )
