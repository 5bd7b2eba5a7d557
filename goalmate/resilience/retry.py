"""Backoff retries for insight provider calls

A question, acknowledgment or quest suggestion is retried only when the
failure looks transient (timeouts, rate limits, 5xx). Anything else goes
straight back to the caller, which decides on default text.
"""

import asyncio
import random
import logging
from typing import Awaitable, Callable, Any, TypeVar

import httpx
import openai

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 2
BASE_DELAY = 0.5  # seconds
MAX_DELAY = 8.0  # seconds
JITTER = 0.1

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

TRANSIENT_PROVIDER_ERRORS = (
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.InternalServerError,
    httpx.TimeoutException,
    httpx.ConnectError,
)

# Matched by name for errors raised outside the SDK's own hierarchy
TRANSIENT_ERROR_NAMES = frozenset(
    cls.__name__ for cls in TRANSIENT_PROVIDER_ERRORS
)


def is_retryable_error(exc: BaseException) -> bool:
    """Whether another attempt at the provider call could succeed"""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    if isinstance(exc, TRANSIENT_PROVIDER_ERRORS):
        return True
    return type(exc).__name__ in TRANSIENT_ERROR_NAMES


def calculate_backoff(attempt: int) -> float:
    """Delay before retry number ``attempt`` (0-based), capped at MAX_DELAY"""
    delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY)
    return max(delay + random.uniform(-JITTER * delay, JITTER * delay), 0.0)


async def retry_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = MAX_RETRIES,
    **kwargs: Any
) -> T:
    """
    Await ``func(*args, **kwargs)``, retrying transient failures.

    The last error is re-raised once ``max_retries`` retries are used up,
    and non-transient errors are re-raised immediately.
    """
    name = getattr(func, "__name__", "provider_call")
    attempt = 0

    while True:
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if not is_retryable_error(e):
                logger.warning(f"[RETRY] {name} failed with {type(e).__name__}, not retrying: {e}")
                raise
            if attempt >= max_retries:
                logger.error(f"[RETRY] {name} still failing after {max_retries} retries")
                raise

            backoff = calculate_backoff(attempt)
            attempt += 1

            from goalmate.resilience.metrics import record_retry
            record_retry(name.lstrip("_"))

            logger.info(
                f"[RETRY] {name} retry {attempt}/{max_retries} in {backoff:.2f}s "
                f"({type(e).__name__})"
            )
            await asyncio.sleep(backoff)
