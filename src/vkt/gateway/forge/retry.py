"""Bounded retry of forge calls that fail transiently."""

import logging
from collections.abc import Callable
from typing import TypeVar

from vkt.core.errors import ForgeError, RateLimited
from vkt.gateway.time.abc import Time

logger = logging.getLogger(__name__)

# Delays between attempts; len + 1 attempts in total
RETRY_DELAYS = [1.0, 2.0]

# Upper bound on a provider-supplied Retry-After hint
MAX_RETRY_AFTER_SECONDS = 60.0

T = TypeVar("T")


def _delay_for(error: ForgeError, default: float) -> float:
    if isinstance(error, RateLimited) and error.retry_after is not None:
        return min(max(error.retry_after, default), MAX_RETRY_AFTER_SECONDS)
    return default


def with_forge_retry(
    time: Time,
    operation_name: str,
    fn: Callable[[], T],
    retry_delays: list[float] | None = None,
) -> T:
    """Execute a forge call, retrying transient failures with backoff.

    Only errors whose `is_transient` is True (RateLimited, TransportError)
    are retried. Any other exception bubbles up immediately. A RateLimited
    error's retry_after hint replaces the scheduled delay when it is longer.

    Args:
        time: Time abstraction for sleep operations
        operation_name: Description for logging, e.g. "upload scripts/a.sh"
        fn: The call to execute
        retry_delays: Custom delays. Defaults to [1.0, 2.0] (3 attempts).

    Returns:
        Result from the first successful call

    Raises:
        ForgeError: The last transient error once all attempts are exhausted,
            or the first non-transient error
    """
    delays = retry_delays if retry_delays is not None else RETRY_DELAYS

    for attempt in range(len(delays) + 1):
        try:
            result = fn()
        except ForgeError as e:
            if not e.is_transient:
                raise
            if attempt == len(delays):
                logger.warning(
                    "Failed after %d attempts: %s: %s", len(delays) + 1, operation_name, e
                )
                raise
            delay = _delay_for(e, delays[attempt])
            logger.info("Retry %d after %.1fs: %s: %s", attempt + 1, delay, operation_name, e)
            time.sleep(delay)
            continue

        if attempt > 0:
            logger.info("Success on retry %d: %s", attempt, operation_name)
        return result

    msg = "Retry logic error"
    raise AssertionError(msg)
