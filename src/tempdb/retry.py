"""Constant-interval retry used while waiting for a server to become ready."""

import logging
import time
from typing import Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def retry(
    fn: Callable[[], T],
    attempts: int,
    interval: float,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    description: str = "operation",
) -> T:
    """Call `fn` until it succeeds, at most `attempts` times, `interval` seconds apart.

    Only exceptions listed in `retry_on` count as transient; anything else
    propagates immediately. When the budget runs out the last failure is
    re-raised.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    attempt = 1
    while True:
        try:
            return fn()
        except retry_on as e:
            if attempt >= attempts:
                logger.debug("%s failed after %d attempts: %s", description, attempt, e)
                raise
            logger.debug("%s attempt %d failed: %s", description, attempt, e)
            time.sleep(interval)
            attempt += 1
