"""
Tests for llm_runner.mock_client module.

Tests cover:
- MockLLMClient initialization
- Response lookup with configured prompts
- Default response fallback
- Call recording and configured errors
- Protocol compliance
"""

import pytest

from aeo_visibility.exceptions import LLMTimeoutError
from aeo_visibility.llm_runner.mock_client import MockLLMClient
from aeo_visibility.llm_runner.models import LLMResponse


class TestMockLLMClientInit:
    """Test suite for MockLLMClient initialization."""

    def test_init_defaults(self):
        client = MockLLMClient()

        assert client.responses == {}
        assert client.default_response == "[]"
        assert client.model_name == "mock-model"
        assert client.provider == "mock"
        assert client.tokens_per_response == 100
        assert client.error is None
        assert client.calls == []

    def test_calls_not_shared_between_instances(self):
        first = MockLLMClient()
        first.calls.append("x")

        assert MockLLMClient().calls == []


class TestMockLLMClientGenerateAnswer:
    """Test suite for MockLLMClient.generate_answer()."""

    @pytest.mark.asyncio
    async def test_configured_response(self):
        client = MockLLMClient(responses={"brands please": '["Acme"]'})

        response = await client.generate_answer("brands please")

        assert isinstance(response, LLMResponse)
        assert response.answer_text == '["Acme"]'
        assert response.tokens_used == 100
        assert response.prompt_tokens == 50
        assert response.completion_tokens == 50
        assert response.timestamp_utc.endswith("Z")

    @pytest.mark.asyncio
    async def test_default_response(self):
        client = MockLLMClient(default_response='["Beta"]', model_name="m", provider="p")

        response = await client.generate_answer("unknown prompt")

        assert response.answer_text == '["Beta"]'
        assert response.model_name == "m"
        assert response.provider == "p"

    @pytest.mark.asyncio
    async def test_records_calls(self):
        client = MockLLMClient()

        await client.generate_answer("one")
        await client.generate_answer("two")

        assert client.calls == ["one", "two"]

    @pytest.mark.asyncio
    async def test_configured_error(self):
        client = MockLLMClient(error=LLMTimeoutError("timed out"))

        with pytest.raises(LLMTimeoutError, match="timed out"):
            await client.generate_answer("anything")

        assert client.calls == ["anything"]
