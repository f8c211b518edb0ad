"""Retry logic with exponential backoff for Outline API rate limits.

This module provides retry functionality for handling 429 rate limit
responses. It implements exponential backoff (1s, 2s, 4s) using
asyncio.sleep and fails fast for non-rate-limit errors.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from .errors import APIAccessError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 3


async def retry_on_rate_limit(func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
    """Await a coroutine function, retrying on 429 with exponential backoff.

    Args:
        func: Coroutine function to execute with retry logic
        *args: Positional arguments to pass to the function
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The return value of the function

    Raises:
        APIAccessError: If rate limit persists after 3 retries
        Other exceptions: Passed through immediately without retry

    Example:
        >>> response = await retry_on_rate_limit(client.post, url, json=body)
    """
    for retry_num in range(MAX_RETRIES + 1):  # 4 attempts total
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if not _is_rate_limit_error(e):
                raise

            if retry_num >= MAX_RETRIES:
                logger.error(
                    f"Rate limit persisted after {MAX_RETRIES} retries, giving up"
                )
                raise APIAccessError(
                    f"Outline API failure (after {MAX_RETRIES} retries)",
                    status_code=429,
                )

            wait_time = 2 ** retry_num
            logger.info(
                f"Rate limit hit, retrying in {wait_time}s "
                f"(retry {retry_num + 1}/{MAX_RETRIES})"
            )
            await asyncio.sleep(wait_time)

    raise APIAccessError(f"Outline API failure (after {MAX_RETRIES} retries)")


def _is_rate_limit_error(exception: Exception) -> bool:
    """Check if an exception represents a rate limit (429) error.

    Args:
        exception: The exception to check

    Returns:
        True if this appears to be a rate limit error, False otherwise
    """
    if getattr(exception, 'status_code', None) == 429:
        return True

    # httpx.HTTPStatusError carries the response
    response = getattr(exception, 'response', None)
    if response is not None and getattr(response, 'status_code', None) == 429:
        return True

    error_msg = str(exception).lower()
    rate_limit_patterns = [
        '429 too many requests',
        'rate limit exceeded',
        'rate limited',
    ]
    return any(pattern in error_msg for pattern in rate_limit_patterns)
