"""
RETRY UTILITY
=============

Awaits a coroutine factory and, if it raises, retries a few times with
exponential backoff. Used for the embedding and Pinecone calls so a network
blip doesn't immediately drop the retrieved context. Each attempt can be
bounded by a timeout.

Not used for generation: the fallback chain moves to the next model instead
of retrying the same one.

Example:
  vector = await with_retry(lambda: embed(text), max_retries=2, timeout=10.0)
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar


logger = logging.getLogger("YogiAI")

T = TypeVar("T")


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    initial_delay: float = 1.0,
    timeout: Optional[float] = None,
) -> T:
    """
    Await fn(). If it raises (or exceeds timeout), wait initial_delay seconds and try again;
    delay doubles each retry. After max_retries attempts (including the first), re-raise the last exception.
    """
    attempts = max(1, max_retries)
    delay = initial_delay

    for attempt in range(attempts):
        try:
            if timeout is not None:
                return await asyncio.wait_for(fn(), timeout=timeout)
            return await fn()
        except Exception as e:
            if attempt == attempts - 1:
                raise
            logger.warning(
                "Attempt %s/%s failed (%s). Retrying in %.1fs: %s",
                attempt + 1,
                attempts,
                fn.__name__ if hasattr(fn, "__name__") else "call",
                delay,
                e,
            )
            await asyncio.sleep(delay)
            delay *= 2  # Exponential backoff: 1s, 2s, 4s, ...
