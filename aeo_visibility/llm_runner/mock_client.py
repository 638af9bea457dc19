"""
Mock generative-model client for testing.

Provides MockLLMClient that implements the LLMClient protocol without making
real API calls. Used for deterministic testing of dynamic brand detection and
the response analyzer without mocking HTTP infrastructure.

Example:
    >>> from aeo_visibility.llm_runner.mock_client import MockLLMClient
    >>> client = MockLLMClient(default_response='["Acme", "Beta"]')
    >>> response = await client.generate_answer("Extract all brand names ...")
    >>> response.answer_text
    '["Acme", "Beta"]'
"""

import logging
from dataclasses import dataclass, field

from aeo_visibility.llm_runner.models import LLMResponse
from aeo_visibility.utils.time import utc_timestamp

logger = logging.getLogger(__name__)


@dataclass
class MockLLMClient:
    """
    Mock client that implements the LLMClient protocol.

    Attributes:
        responses: Dict mapping prompts to answers. If prompt not found,
            returns default_response.
        default_response: Answer returned for unknown prompts
        model_name: Model identifier to return in responses
        provider: Provider name to return in responses
        tokens_per_response: Number of tokens to report for each response
        error: Exception raised by every call instead of answering, for
            exercising failure paths
        calls: Prompts received, in call order

    Example:
        >>> client = MockLLMClient(error=LLMTimeoutError("timed out"))
        >>> await client.generate_answer("anything")
        Traceback (most recent call last):
        ...
        LLMTimeoutError: timed out
    """

    responses: dict[str, str] | None = None
    default_response: str = "[]"
    model_name: str = "mock-model"
    provider: str = "mock"
    tokens_per_response: int = 100
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    def __post_init__(self):
        """Initialize responses dict if not provided."""
        if self.responses is None:
            self.responses = {}

        logger.info(
            f"Initialized MockLLMClient with {len(self.responses)} configured responses"
        )

    async def generate_answer(self, prompt: str) -> LLMResponse:
        """
        Return the configured answer for a prompt, or raise the configured error.

        Raises:
            Exception: self.error, when set
        """
        self.calls.append(prompt)

        if self.error is not None:
            logger.debug(f"MockLLMClient raising {type(self.error).__name__}")
            raise self.error

        answer_text = self.responses.get(prompt, self.default_response)

        logger.debug(f"MockLLMClient returning answer for prompt: {prompt[:50]}...")

        return LLMResponse(
            answer_text=answer_text,
            tokens_used=self.tokens_per_response,
            prompt_tokens=self.tokens_per_response // 2,
            completion_tokens=self.tokens_per_response // 2,
            provider=self.provider,
            model_name=self.model_name,
            timestamp_utc=utc_timestamp(),
        )
