"""Unit tests for the OpenAI-compatible LLM provider adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from src.providers.llm.openai_provider import OpenAILLMProvider
from src.utils.errors import LLMError

_REQUEST = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")


def _client(base_url: str = "https://api.groq.com/openai/v1", api_key: str = "gsk_test"):
    client = MagicMock()
    client.base_url = base_url
    client.api_key = api_key
    client.chat.completions.create = AsyncMock(
        return_value=MagicMock(
            choices=[MagicMock(message=MagicMock(content="Clean text."))],
            usage=MagicMock(total_tokens=42),
        )
    )
    return client


class TestOpenAILLMProvider:
    @pytest.mark.asyncio
    async def test_complete_sends_system_and_user_messages(self) -> None:
        client = _client()
        provider = OpenAILLMProvider(client, model="llama-3.1-8b-instant")

        text = await provider.complete("system", "user", temperature=0.1, max_tokens=99)

        assert text == "Clean text."
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "llama-3.1-8b-instant"
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "user"},
        ]
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 99

    @pytest.mark.asyncio
    async def test_timeout_wrapped(self) -> None:
        client = _client()
        client.chat.completions.create = AsyncMock(
            side_effect=openai.APITimeoutError(request=_REQUEST)
        )

        with pytest.raises(LLMError, match="timed out"):
            await OpenAILLMProvider(client).complete("s", "u")

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self) -> None:
        client = _client()
        client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=_REQUEST)
        )

        with pytest.raises(LLMError) as exc_info:
            await OpenAILLMProvider(client).complete("s", "u")
        assert exc_info.value.provider_name == "openai-compatible"
        assert isinstance(exc_info.value.__cause__, openai.APIConnectionError)

    @pytest.mark.asyncio
    async def test_empty_response(self) -> None:
        client = _client()
        client.chat.completions.create = AsyncMock(return_value=MagicMock(choices=[]))

        with pytest.raises(LLMError, match="empty response"):
            await OpenAILLMProvider(client).complete("s", "u")

    def test_provider_label_follows_base_url(self) -> None:
        assert OpenAILLMProvider(_client()).get_provider_name() == "openai-compatible"
        assert (
            OpenAILLMProvider(_client(base_url="https://api.openai.com/v1")).get_provider_name()
            == "openai"
        )

    def test_availability_follows_api_key(self) -> None:
        assert OpenAILLMProvider(_client()).is_available() is True
        assert OpenAILLMProvider(_client(api_key="")).is_available() is False
