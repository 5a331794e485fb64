"""Retry utilities with exponential backoff for place-provider HTTP calls."""

import logging
from typing import Callable

import httpx
import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.stdlib.get_logger(__name__)


def is_transient(exc: BaseException) -> bool:
    """Transport errors, 429 and 5xx are worth retrying; other 4xx are not."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, httpx.RequestError)


def http_retry(
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 8.0,
):
    """Retry decorator for HTTP calls (sync or async).

    Args:
        max_attempts: Max attempts including the first
        min_wait: Min wait between retries (seconds)
        max_wait: Max wait between retries (seconds)
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception(is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def retry_from_config(config) -> Callable:
    """Build http_retry from a RetryConfig model or its dict form."""
    if hasattr(config, "model_dump"):
        config = config.model_dump()
    config = config or {}
    return http_retry(
        max_attempts=config.get("max_attempts", 3),
        min_wait=config.get("min_wait", 1.0),
        max_wait=config.get("max_wait", 8.0),
    )
