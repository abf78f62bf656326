"""Wait for writes to become visible in an eventually consistent listing.

Entra ID replicates directory changes asynchronously, so a members listing
taken right after a successful add may not include the new member yet. These
helpers poll a listing until it reflects the change or the budget runs out.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Collection
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_fixed,
)

from entra_membership.core.config import DEFAULT_POLL_ATTEMPTS, DEFAULT_POLL_DELAY
from entra_membership.entra.errors import ConvergenceTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")
C = TypeVar("C", bound=Collection)

Sleep = Callable[[float], Awaitable[None]]


async def _wait_for(
    produce: Callable[[], Awaitable[C]],
    done: Callable[[C], bool],
    target: object,
    attempts: int,
    delay: float,
    timeout: float | None,
    sleep: Sleep,
) -> C:
    def log_poll(retry_state: RetryCallState) -> None:
        logger.debug(
            f"{target!r} not visible yet (attempt {retry_state.attempt_number}/{attempts}), "
            f"polling again in {delay}s"
        )

    stop = stop_after_attempt(attempts)
    if timeout is not None:
        stop = stop | stop_after_delay(timeout)

    retrying = AsyncRetrying(
        retry=retry_if_result(lambda items: not done(items)),
        stop=stop,
        wait=wait_fixed(delay),
        sleep=sleep,
        before_sleep=log_poll,
    )
    try:
        return await retrying(produce)
    except RetryError as e:
        raise ConvergenceTimeoutError(target, e.last_attempt.attempt_number) from None


async def wait_for_list_add(
    target: T,
    produce: Callable[[], Awaitable[C]],
    *,
    attempts: int = DEFAULT_POLL_ATTEMPTS,
    delay: float = DEFAULT_POLL_DELAY,
    timeout: float | None = None,
    sleep: Sleep = asyncio.sleep,
) -> C:
    """Poll ``produce`` until its result contains ``target``.

    Exceptions from ``produce`` are not retried here; they propagate on the
    first failure.

    Args:
        target: Value that must appear in the listing
        produce: Coroutine function returning the current listing
        attempts: Maximum number of times to call ``produce``
        delay: Seconds to sleep between calls
        timeout: Optional overall budget in seconds
        sleep: Coroutine used to sleep between calls

    Returns:
        The first listing that contains ``target``

    Raises:
        ConvergenceTimeoutError: If ``target`` never appeared
    """
    return await _wait_for(
        produce, lambda items: target in items, target, attempts, delay, timeout, sleep
    )


async def wait_for_list_remove(
    target: T,
    produce: Callable[[], Awaitable[C]],
    *,
    attempts: int = DEFAULT_POLL_ATTEMPTS,
    delay: float = DEFAULT_POLL_DELAY,
    timeout: float | None = None,
    sleep: Sleep = asyncio.sleep,
) -> C:
    """Poll ``produce`` until its result no longer contains ``target``.

    Same contract as :func:`wait_for_list_add` with the condition inverted.
    """
    return await _wait_for(
        produce, lambda items: target not in items, target, attempts, delay, timeout, sleep
    )
