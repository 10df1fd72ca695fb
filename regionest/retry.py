"""
Retry logic with exponential backoff for handling transient failures.

The retry loop is an explicit bounded loop: the number of attempts is
``max_retries + 1`` and the sleep function is injectable so tests can
observe delays without waiting for them.
"""

import time
from typing import Any, Callable, Optional, Tuple, Type


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""

    def __init__(self, message: str, attempts: int = 0, last_exception: Optional[BaseException] = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_exception = last_exception


def backoff_delays(
    max_retries: int,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
) -> list:
    """Return the delay slept before each retry, in order."""
    delays = []
    delay = base_delay
    for _ in range(max_retries):
        delays.append(min(delay, max_delay))
        delay *= exponential_base
    return delays


def call_with_retry(
    func: Callable,
    *args: Any,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable] = None,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any,
):
    """
    Call ``func`` until it succeeds or the retry budget is spent.

    Args:
        func: Callable to invoke
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Base for exponential calculation (delay *= base)
        exceptions: Tuple of exceptions to catch and retry
        on_retry: Optional callback function(attempt, exception, delay)
        sleep: Function used to wait between attempts

    Returns:
        Whatever ``func`` returns on its first successful attempt.

    Raises:
        RetryError: After ``max_retries + 1`` failed attempts.
    """
    delays = backoff_delays(max_retries, base_delay, max_delay, exponential_base)

    for attempt in range(max_retries + 1):
        try:
            return func(*args, **kwargs)
        except exceptions as e:
            # Don't sleep after the last attempt
            if attempt >= max_retries:
                raise RetryError(
                    f"Failed after {max_retries + 1} attempts: {str(e)}",
                    attempts=attempt + 1,
                    last_exception=e,
                ) from e

            current_delay = delays[attempt]
            if on_retry:
                on_retry(attempt + 1, e, current_delay)
            sleep(current_delay)

    # max_retries < 0 never enters the loop
    raise RetryError("No attempts were made", attempts=0)


def should_retry_http_status(status_code: int) -> bool:
    """
    Check if an HTTP status code should count as a failed attempt.

    Args:
        status_code: HTTP status code

    Returns:
        True for every non-2xx status
    """
    return not 200 <= status_code < 300
