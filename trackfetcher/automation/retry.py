"""
Track Fetcher - Retry & Backoff Utility

Provides ``retry_call`` for browser operations that fail transiently
(slow navigations, detached frames).  Retries with exponential backoff.
"""

import time
import logging

logger = logging.getLogger("trackfetcher.automation")


def retry_call(
    fn,
    args=(),
    kwargs=None,
    max_attempts: int = 3,
    backoff_base: float = 2,
    retryable_exceptions: tuple = (Exception,),
    sleep=time.sleep,
):
    """Call ``fn(*args, **kwargs)``, retrying on transient failures.

    Args:
        fn: Callable to invoke.
        args: Positional arguments for *fn*.
        kwargs: Keyword arguments for *fn*.
        max_attempts: Maximum number of attempts (including the first).
        backoff_base: Base for exponential backoff (seconds).
        retryable_exceptions: Tuple of exception types to retry on.
        sleep: Sleep function (swap out in tests).
    """
    if kwargs is None:
        kwargs = {}

    for attempt in range(1, max_attempts + 1):
        try:
            return fn(*args, **kwargs)
        except retryable_exceptions as e:
            if attempt == max_attempts:
                raise

            wait = backoff_base ** attempt
            logger.warning(
                "Retry %d/%d for %s: %s (wait %.1fs)",
                attempt,
                max_attempts,
                getattr(fn, "__name__", "call"),
                e,
                wait,
            )
            sleep(wait)
