"""
Tests for llm_runner/retry_config.py module.

Tests retry configuration constants, the decorator factory, and retry
behavior on async callables.

Test coverage:
- Constants validation
- Retry on transient errors (429/5xx status errors, connect errors, timeouts)
- Fail-fast on anything else
- Max attempts enforcement and re-raising of the last exception
"""

import httpx
import pytest
from tenacity import wait_none

from aeo_visibility.exceptions import LLMResponseError
from aeo_visibility.llm_runner.retry_config import (
    MAX_ATTEMPTS,
    MAX_WAIT_SECONDS,
    MIN_WAIT_SECONDS,
    NO_RETRY_STATUS_CODES,
    REQUEST_TIMEOUT,
    RETRY_STATUS_CODES,
    create_retry_decorator,
)

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def status_error(status_code):
    response = httpx.Response(status_code, request=REQUEST)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=REQUEST, response=response)


def fast_retry(func):
    """Apply the production decorator without backoff sleeps."""
    decorated = create_retry_decorator()(func)
    decorated.retry.wait = wait_none()
    return decorated


# ============================================================================
# CONSTANTS TESTS
# ============================================================================


def test_constants():
    """Attempts, backoff window and timeout."""
    assert MAX_ATTEMPTS == 3
    assert MIN_WAIT_SECONDS == 1
    assert MAX_WAIT_SECONDS == 10
    assert REQUEST_TIMEOUT == 30.0


def test_status_code_sets():
    assert {429, 500, 502, 503, 504} == RETRY_STATUS_CODES
    assert {400, 401, 404} == NO_RETRY_STATUS_CODES
    assert not RETRY_STATUS_CODES & NO_RETRY_STATUS_CODES
    assert isinstance(RETRY_STATUS_CODES, frozenset)


# ============================================================================
# RETRY BEHAVIOR TESTS
# ============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc",
    [
        status_error(429),
        status_error(503),
        httpx.ConnectError("Connection refused"),
        httpx.ReadTimeout("Read timed out"),
    ],
)
async def test_retries_transient_errors(exc):
    calls = []

    @fast_retry
    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise exc
        return "ok"

    assert await flaky() == "ok"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_exhausted_attempts_reraise_last_exception():
    calls = []

    @fast_retry
    async def always_fails():
        calls.append(1)
        raise status_error(502)

    with pytest.raises(httpx.HTTPStatusError):
        await always_fails()

    assert len(calls) == MAX_ATTEMPTS


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc",
    [LLMResponseError("non-retryable"), ValueError("bad input")],
)
async def test_no_retry_on_other_exceptions(exc):
    calls = []

    @fast_retry
    async def fails_permanently():
        calls.append(1)
        raise exc

    with pytest.raises(type(exc)):
        await fails_permanently()

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_first_attempt_success():
    calls = []

    @fast_retry
    async def succeeds():
        calls.append(1)
        return {"choices": []}

    assert await succeeds() == {"choices": []}
    assert len(calls) == 1
