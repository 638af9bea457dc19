"""
Generative-model client layer for AEO Visibility.

Example:
    >>> from aeo_visibility.llm_runner import build_client
    >>> client = build_client("openai", "gpt-4o-mini", api_key, system_prompt)
    >>> response = await client.generate_answer("Extract all brand names ...")
"""

from .mock_client import MockLLMClient
from .models import LLMClient, LLMResponse, build_client
from .openai_client import OpenAIClient

__all__ = [
    # Protocols
    "LLMClient",
    # Data classes
    "LLMResponse",
    # Functions
    "build_client",
    # Clients
    "MockLLMClient",
    "OpenAIClient",
]
