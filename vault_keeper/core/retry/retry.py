"""
Read Retry.

Bounded exponential backoff with jitter for idempotent chain reads.
Privileged writes never pass through here: a submitted transaction is
either confirmed or surfaced to the caller.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from vault_keeper.core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReadRetryPolicy:
    """
    Backoff policy for RPC reads.

    The delay after attempt ``n`` is ``base_delay * 2**(n-1)`` plus up to
    ``jitter`` of itself, capped at ``max_delay``.

    Attributes:
        max_attempts: Attempts including the first call
        base_delay: Delay after the first failure, in seconds
        max_delay: Upper bound for any single delay
        jitter: Extra random fraction added to each delay
        fatal: Exceptions returned on first sight (contract reverts)
    """
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0
    jitter: float = 0.25
    fatal: Tuple[Type[BaseException], ...] = ()

    def delay(self, attempt: int) -> float:
        backoff = self.base_delay * 2 ** (attempt - 1)
        return min(backoff + backoff * self.jitter * random.random(), self.max_delay)


@dataclass
class ReadOutcome:
    """Value of the last successful attempt, or the error that ended the loop."""
    success: bool
    value: Any = None
    error: Optional[BaseException] = None
    attempts: int = 0


async def retry_read(
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    policy: ReadRetryPolicy,
    **kwargs: Any,
) -> ReadOutcome:
    """
    Await ``func(*args, **kwargs)`` until it succeeds or the policy gives up.

    Example:
        >>> outcome = await retry_read(fn.call, policy=ReadRetryPolicy(max_attempts=5))
        >>> if outcome.success:
        ...     print(outcome.value)
    """
    outcome = ReadOutcome(success=False)

    for attempt in range(1, policy.max_attempts + 1):
        outcome.attempts = attempt
        try:
            outcome.value = await func(*args, **kwargs)
            outcome.success = True
            return outcome
        except Exception as e:
            outcome.error = e
            if isinstance(e, policy.fatal):
                logger.debug(f"Read failed without retry: {type(e).__name__}: {e}")
                break
            if attempt == policy.max_attempts:
                logger.error(f"Read failed after {attempt} attempts: {type(e).__name__}: {e}")
                break

            wait = policy.delay(attempt)
            logger.warning(
                f"Read attempt {attempt}/{policy.max_attempts} failed: {e}. "
                f"Retrying in {wait:.2f}s"
            )
            await asyncio.sleep(wait)

    return outcome
