"""
OpenAI API client implementation for AEO Visibility.

Asynchronous client for the OpenAI Chat Completions API, used by the dynamic
brand detector to enumerate the brands in an answer.

Key features:
- Async HTTP client (httpx.AsyncClient)
- Retry on transient failures (429, 5xx, connect errors, timeouts) with
  exponential backoff
- Fail fast on permanent errors (400, 401, 404, other 4xx)
- Failures surface as LLMProviderError subclasses
- Security: NEVER logs API keys

Example:
    >>> client = OpenAIClient("gpt-4o-mini", api_key="sk-...",
    ...     system_prompt="Return only valid JSON arrays.")
    >>> response = await client.generate_answer("Extract all brand names ...")
    >>> response.answer_text
    '["Acme", "Beta"]'
"""

import logging
from typing import Any

import httpx

from aeo_visibility.config.constants import (
    DEFAULT_BRAND_DETECTION_MAX_TOKENS,
    DEFAULT_BRAND_DETECTION_TEMPERATURE,
    MAX_PROMPT_LENGTH,
)
from aeo_visibility.exceptions import (
    LLMAuthenticationError,
    LLMProviderError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
)
from aeo_visibility.llm_runner.models import LLMResponse
from aeo_visibility.llm_runner.retry_config import (
    NO_RETRY_STATUS_CODES,
    REQUEST_TIMEOUT,
    RETRY_STATUS_CODES,
    create_retry_decorator,
)
from aeo_visibility.utils.time import utc_timestamp

OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"

logger = logging.getLogger(__name__)


class OpenAIClient:
    """
    OpenAI Chat Completions client with async retry logic.

    Implements the LLMClient protocol.

    Attributes:
        model_name: OpenAI model identifier (e.g., "gpt-4o-mini")
        api_key: OpenAI API key for authentication (NEVER logged)
        system_prompt: System message sent with every request
        temperature: Sampling temperature
        max_tokens: Completion token cap

    Retry behavior:
        - Retries on: 429, 500, 502, 503, 504, connection errors, timeouts
        - Fails immediately on: 401 (LLMAuthenticationError), other 4xx
          (LLMResponseError)
        - After the last attempt: 429 -> LLMRateLimitError, timeout ->
          LLMTimeoutError, anything else -> LLMProviderError
    """

    def __init__(
        self,
        model_name: str,
        api_key: str,
        system_prompt: str,
        temperature: float = DEFAULT_BRAND_DETECTION_TEMPERATURE,
        max_tokens: int = DEFAULT_BRAND_DETECTION_MAX_TOKENS,
    ):
        """
        Initialize the client.

        Raises:
            ValueError: If model_name, api_key, or system_prompt is empty
        """
        if not model_name or model_name.isspace():
            raise ValueError("model_name cannot be empty")

        if not api_key or api_key.isspace():
            raise ValueError("api_key cannot be empty")

        if not system_prompt or system_prompt.isspace():
            raise ValueError("system_prompt cannot be empty")

        self.model_name = model_name
        self.api_key = api_key
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens

        logger.info(f"Initialized OpenAI client for model: {model_name}")

    async def generate_answer(self, prompt: str) -> LLMResponse:
        """
        Send a prompt to the Chat Completions API and return the reply.

        Args:
            prompt: User message

        Returns:
            LLMResponse with the reply text and token usage

        Raises:
            ValueError: If prompt is empty or exceeds MAX_PROMPT_LENGTH
            LLMAuthenticationError: On 401
            LLMResponseError: On other non-retryable statuses or malformed replies
            LLMRateLimitError: When still rate limited after all attempts
            LLMTimeoutError: When still timing out after all attempts
            LLMProviderError: On other transport failures after all attempts
        """
        if not prompt or prompt.isspace():
            raise ValueError("Prompt cannot be empty")

        if len(prompt) > MAX_PROMPT_LENGTH:
            raise ValueError(
                f"Prompt exceeds maximum length of {MAX_PROMPT_LENGTH:,} characters "
                f"(received {len(prompt):,} characters)"
            )

        payload = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        logger.debug(f"Sending request to OpenAI: model={self.model_name}")

        try:
            data = await self._post(payload)

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(
                f"OpenAI API HTTP error after retries: status={status}, "
                f"model={self.model_name}"
            )
            if status == 429:
                raise LLMRateLimitError(
                    f"OpenAI rate limit exceeded for model {self.model_name}"
                ) from e
            raise LLMProviderError(
                f"OpenAI API error: status={status}, model={self.model_name}"
            ) from e

        except httpx.TimeoutException as e:
            logger.error(f"OpenAI API timeout: model={self.model_name}, error={e}")
            raise LLMTimeoutError(
                f"OpenAI request timed out after {REQUEST_TIMEOUT}s"
            ) from e

        except httpx.ConnectError as e:
            logger.error(
                f"OpenAI API connection error: model={self.model_name}, error={e}"
            )
            raise LLMProviderError(f"Failed to connect to OpenAI: {e}") from e

        answer_text = self._extract_answer_text(data)
        tokens_used, prompt_tokens, completion_tokens = self._extract_token_usage(data)

        return LLMResponse(
            answer_text=answer_text,
            tokens_used=tokens_used,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            provider="openai",
            model_name=self.model_name,
            timestamp_utc=utc_timestamp(),
        )

    @create_retry_decorator()
    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST the payload, raising retryable httpx errors for 429/5xx."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
            response = await client.post(OPENAI_API_URL, json=payload, headers=headers)

        status = response.status_code

        if status == 401:
            raise LLMAuthenticationError(
                f"OpenAI API rejected the API key for model {self.model_name}"
            )

        if status in NO_RETRY_STATUS_CODES or (
            400 <= status < 500 and status not in RETRY_STATUS_CODES
        ):
            raise LLMResponseError(
                f"OpenAI API error (non-retryable): status={status}, "
                f"model={self.model_name}, detail={self._extract_error_detail(response)}"
            )

        # 429 / 5xx become httpx.HTTPStatusError, which the decorator retries
        response.raise_for_status()

        try:
            return response.json()
        except ValueError as e:
            raise LLMResponseError(f"Failed to parse OpenAI response JSON: {e}") from e

    def _extract_answer_text(self, data: dict[str, Any]) -> str:
        """
        Extract the assistant message from a Chat Completions reply.

        Raises:
            LLMResponseError: If the reply has no choices or no message content
        """
        try:
            choices = data["choices"]
            if not choices:
                raise LLMResponseError("OpenAI response has empty 'choices' array")
            content = choices[0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMResponseError(f"Invalid OpenAI response structure: {e}") from e

        if content is None:
            raise LLMResponseError("OpenAI response message has no content")

        return str(content)

    def _extract_token_usage(self, data: dict[str, Any]) -> tuple[int, int, int]:
        """Return (total, prompt, completion) tokens, zeros when usage is missing."""
        usage = data.get("usage")
        if not usage or not isinstance(usage, dict):
            logger.warning(
                f"OpenAI response missing 'usage' data for model={self.model_name}"
            )
            return 0, 0, 0

        return (
            int(usage.get("total_tokens") or 0),
            int(usage.get("prompt_tokens") or 0),
            int(usage.get("completion_tokens") or 0),
        )

    def _extract_error_detail(self, response: httpx.Response) -> str:
        """Extract the API's error message without ever including credentials."""
        try:
            error = response.json().get("error", {})
            return str(error.get("message", "Unknown error"))
        except Exception:
            return f"HTTP {response.status_code}"
