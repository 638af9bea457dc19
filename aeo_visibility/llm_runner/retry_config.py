"""
Retry configuration for generative-model API calls.

Centralized retry policy using tenacity for exponential backoff. Only the
HTTP client retries; the analysis core above it never does, and the dynamic
brand detector turns a final failure into an empty result.

Policy:
- Retry on: 429 and 5xx (raised as httpx.HTTPStatusError), httpx.ConnectError,
  httpx.TimeoutException
- Fail fast on: 400, 401, 404 (the client raises a non-httpx error for these)
- 3 attempts total, exponential backoff between 1s and 10s
"""

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

# Total attempts = 1 initial + 2 retries
MAX_ATTEMPTS = 3

MIN_WAIT_SECONDS = 1

# Brand detection is a cheap side call; cap the backoff well below the
# answer-generation timeouts of the surrounding system
MAX_WAIT_SECONDS = 10

RETRY_STATUS_CODES = frozenset([429, 500, 502, 503, 504])

NO_RETRY_STATUS_CODES = frozenset([400, 401, 404])

# Per-attempt HTTP timeout in seconds
REQUEST_TIMEOUT = 30.0


def create_retry_decorator():
    """
    Create a tenacity retry decorator for generative-model API calls.

    Example:
        >>> @create_retry_decorator()
        ... async def post_request():
        ...     if response.status_code in NO_RETRY_STATUS_CODES:
        ...         raise LLMResponseError("Permanent error")
        ...     response.raise_for_status()

    Note:
        The caller must raise a non-httpx exception for NO_RETRY_STATUS_CODES;
        anything that is not an httpx transport/status error is not retried.
        The last exception is re-raised once attempts are exhausted.
    """
    return retry(
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait_exponential(
            multiplier=1,
            min=MIN_WAIT_SECONDS,
            max=MAX_WAIT_SECONDS,
        ),
        retry=retry_if_exception_type(
            (
                httpx.HTTPStatusError,
                httpx.ConnectError,
                httpx.TimeoutException,
            )
        ),
        reraise=True,
    )
