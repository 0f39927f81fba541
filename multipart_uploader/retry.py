"""Opt-in retry with backoff for presigned part uploads.

Part uploads are not retried unless the uploader is configured with more
than one attempt. When they are, only transient failures are retried:

Transient (Retryable):
- Connection errors and timeouts
- Server errors (500, 502, 503, 504)
- Rate limiting (429)

Permanent (Not Retryable):
- Other client errors, e.g. 403 for an expired or mismatched signature
- Anything that is not an httpx error
"""

import logging
import time
from typing import Any, Callable, Optional, Sequence

import httpx

logger = logging.getLogger(__name__)

# HTTP status codes that indicate transient server issues
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

DEFAULT_DELAYS = (1.0, 2.0, 4.0)


class RetryExhausted(Exception):
    """Raised when all retry attempts have been exhausted."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


def is_retryable_error(error: Exception) -> bool:
    """Return True if ``error`` is a transient failure worth retrying."""
    if isinstance(error, (httpx.ConnectError, httpx.TimeoutException)):
        return True

    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRYABLE_STATUS_CODES

    return False


def retry_with_backoff(
    func: Callable[..., Any],
    max_attempts: int = 1,
    delays: Sequence[float] = DEFAULT_DELAYS,
    args: tuple = (),
    kwargs: Optional[dict] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """Call ``func`` until it succeeds, retrying transient errors.

    Args:
        func: The function to execute.
        max_attempts: Maximum number of attempts, including the first.
            1 disables retrying.
        delays: Seconds to wait before each retry; the last value is
            reused once the sequence runs out.
        args: Positional arguments to pass to func.
        kwargs: Keyword arguments to pass to func.
        sleep: Function used to wait between attempts.

    Returns:
        The return value of func.

    Raises:
        RetryExhausted: If every attempt fails with a retryable error and
            more than one attempt was allowed.
        Exception: Non-retryable errors propagate immediately, and so does
            the only error when max_attempts is 1.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    if kwargs is None:
        kwargs = {}

    last_error: Optional[Exception] = None

    for attempt in range(1, max_attempts + 1):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            last_error = e

            if max_attempts == 1 or not is_retryable_error(e):
                raise

            if attempt >= max_attempts:
                raise RetryExhausted(
                    f"Operation failed after {max_attempts} attempts: {e}",
                    attempts=max_attempts,
                    last_error=last_error,
                ) from last_error

            delay = delays[min(attempt - 1, len(delays) - 1)] if delays else 0.0
            logger.warning(
                "Attempt %d/%d failed (%s); retrying in %.1fs",
                attempt, max_attempts, e, delay,
            )
            sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RetryExhausted(
        f"Operation failed after {max_attempts} attempts",
        attempts=max_attempts,
        last_error=last_error,
    )
