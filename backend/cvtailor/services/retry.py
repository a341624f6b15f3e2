"""
Retry with exponential backoff for AI API calls.

Transient failures (rate limits, timeouts, 5xx, dropped connections) are
retried; authentication and validation failures are raised immediately.
"""
import asyncio
import logging
import random
import re
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_PATTERNS = [
    re.compile(r"rate.?limit", re.IGNORECASE),
    re.compile(r"too many requests", re.IGNORECASE),
    re.compile(r"quota", re.IGNORECASE),
    re.compile(r"timeout", re.IGNORECASE),
    re.compile(r"timed?\s*out", re.IGNORECASE),
    re.compile(r"ECONNRESET"),
    re.compile(r"ECONNREFUSED"),
    re.compile(r"ENOTFOUND"),
    re.compile(r"connection (reset|refused|error)", re.IGNORECASE),
    re.compile(r"socket hang up", re.IGNORECASE),
    re.compile(r"network", re.IGNORECASE),
    re.compile(r"500|502|503|529"),
    re.compile(r"overloaded", re.IGNORECASE),
    re.compile(r"unavailable", re.IGNORECASE),
    re.compile(r"capacity", re.IGNORECASE),
]

AUTH_ERROR = re.compile(r"401|403|unauthorized|forbidden", re.IGNORECASE)
CLIENT_ERROR = re.compile(r"400|invalid|validation|schema", re.IGNORECASE)
TIMEOUT = re.compile(r"timeout", re.IGNORECASE)


def is_retryable_error(error) -> bool:
    message = str(error)

    # Never retry auth or validation errors
    if AUTH_ERROR.search(message):
        return False
    if CLIENT_ERROR.search(message) and not TIMEOUT.search(message):
        return False

    return any(pattern.search(message) for pattern in RETRYABLE_PATTERNS)


def get_delay(attempt: int, base_delay_ms: int, max_delay_ms: int) -> int:
    """Backoff for the given attempt with +/-20% jitter, in milliseconds."""
    capped = min(base_delay_ms * (2 ** attempt), max_delay_ms)
    return round(capped * random.uniform(0.8, 1.2))


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 2,
    base_delay_ms: int = 1000,
    max_delay_ms: int = 10000,
) -> T:
    """Await fn(), retrying transient failures up to max_retries times."""
    for attempt in range(max_retries + 1):
        try:
            return await fn()
        except Exception as e:
            if attempt == max_retries or not is_retryable_error(e):
                raise

            delay = get_delay(attempt, base_delay_ms, max_delay_ms)
            logger.warning(
                f"[AI Retry] Attempt {attempt + 1}/{max_retries + 1} failed: "
                f"{str(e)[:120]}. Retrying in {delay}ms..."
            )
            await asyncio.sleep(delay / 1000)
