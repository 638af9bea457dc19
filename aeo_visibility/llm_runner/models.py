"""
Generative-model client abstraction for AEO Visibility.

The dynamic brand detector asks a generative text model to enumerate the
brands in an answer. It talks to that model only through the LLMClient
Protocol defined here, so tests can inject MockLLMClient and production code
can inject OpenAIClient without either side knowing about the other.

Key components:
- LLMResponse: Structured dataclass holding the model's reply
- LLMClient: Protocol defining the provider-agnostic interface
- build_client: Factory creating a configured client instance

There are no module-level client singletons: every client is constructed
explicitly from configuration and handed to its consumer.

Example:
    >>> client = build_client(
    ...     "openai", "gpt-4o-mini", api_key,
    ...     system_prompt="Return only valid JSON arrays.",
    ... )
    >>> response = await client.generate_answer("Extract all brand names ...")
    >>> response.answer_text
    '["Acme", "Beta"]'
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass
class LLMResponse:
    """
    Structured response from a generative-model call.

    Attributes:
        answer_text: The model's complete reply text
        tokens_used: Total tokens consumed (prompt + completion)
        provider: Provider name (e.g., "openai")
        model_name: Model identifier (e.g., "gpt-4o-mini")
        timestamp_utc: ISO 8601 timestamp with 'Z' suffix when the reply arrived
        prompt_tokens: Tokens in the prompt/input
        completion_tokens: Tokens in the completion/output
    """

    answer_text: str
    tokens_used: int
    provider: str
    model_name: str
    timestamp_utc: str
    prompt_tokens: int = 0
    completion_tokens: int = 0


class LLMClient(Protocol):
    """
    Provider-agnostic interface for generative-model clients.

    Implementations MUST:
    - Use async/await for HTTP requests (httpx.AsyncClient)
    - Retry transient failures (429, 5xx, connect errors, timeouts)
    - Never log API keys
    - Raise an LLMProviderError subclass on permanent failure
    """

    async def generate_answer(self, prompt: str) -> LLMResponse:
        """
        Send one prompt and return the model's reply.

        Raises:
            ValueError: If prompt is empty
            LLMProviderError: On permanent failure or after retries are exhausted
        """
        ...


SUPPORTED_PROVIDERS = ("openai",)


def build_client(
    provider: str,
    model_name: str,
    api_key: str,
    system_prompt: str,
    temperature: float = 0.1,
    max_tokens: int = 200,
) -> LLMClient:
    """
    Create the client for a provider.

    Args:
        provider: Provider identifier (lowercase string)
        model_name: Model identifier (e.g., "gpt-4o-mini")
        api_key: API key for authentication (NEVER logged or persisted)
        system_prompt: System message sent with every request
        temperature: Sampling temperature
        max_tokens: Completion token cap

    Returns:
        LLMClient: Provider-specific client implementing the LLMClient protocol

    Raises:
        ValueError: If provider is not supported
    """
    if provider == "openai":
        # Import here to keep imports lazy
        from aeo_visibility.llm_runner.openai_client import OpenAIClient

        return OpenAIClient(
            model_name=model_name,
            api_key=api_key,
            system_prompt=system_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    raise ValueError(
        f"Unsupported provider: '{provider}'. "
        f"Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
    )
