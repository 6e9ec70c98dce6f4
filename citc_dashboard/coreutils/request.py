import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from .errors import get_error_status

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRIES = 2  # 3 attempts in total
DEFAULT_BASE_DELAY = 0.2  # 200ms, then 400ms, 800ms...


def is_retryable(error: BaseException) -> bool:
    """Retry when there is no status code (network/parse) or a 5xx"""
    status = get_error_status(error)
    return status is None or status >= 500


async def request_with_retry(
    factory: Callable[[], Awaitable[T]],
    retries: int = DEFAULT_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run an upstream call with exponential backoff for transient failures.

    Args:
        factory: Zero-argument callable returning a fresh awaitable per attempt
        retries: Number of retries after the first attempt
        base_delay: Seconds to wait before the first retry, doubled each retry
        sleep: Awaitable sleep used between attempts

    Returns:
        Result of the first successful attempt

    Raises:
        The error of the first non-retryable failure, or of the last attempt
    """
    attempt = 0
    delay = base_delay

    while True:
        try:
            return await factory()
        except Exception as e:
            if not is_retryable(e) or attempt >= retries:
                raise

            logger.warning(
                f"Attempt {attempt + 1} failed ({e}), retrying in {delay:.1f}s..."
            )
            await sleep(delay)
            delay *= 2
            attempt += 1
