"""Fixed-delay retry helper."""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from zotmirror.core.constants import DEFAULT_RETRY_ATTEMPTS, DEFAULT_RETRY_DELAY

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_operation(
    operation: Callable[[], T],
    attempts: int = DEFAULT_RETRY_ATTEMPTS,
    delay: float = DEFAULT_RETRY_DELAY,
    *,
    description: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
) -> T | None:
    """Run ``operation`` until it succeeds or ``attempts`` is exhausted.

    Waits ``delay`` seconds between attempts. Exhaustion returns ``None``
    instead of raising, so callers must check the result.

    Args:
        operation: Zero-argument callable to run.
        attempts: Maximum number of attempts.
        delay: Seconds to wait between attempts.
        description: Label used in log messages.
        sleep: Sleep function (replaced in tests).

    Returns:
        The operation result, or None if every attempt raised.
    """
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except Exception as exc:
            logger.debug("%s failed (attempt %d/%d): %s", description, attempt, attempts, exc)
            if attempt < attempts:
                sleep(delay)
    logger.debug("%s gave up after %d attempts", description, attempts)
    return None


__all__ = ["retry_operation"]
