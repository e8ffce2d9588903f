"""Tests for the LiteLLM provider."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from commandsense.providers.litellm_provider import LiteLLMProvider


def fake_completion(content, finish_reason="stop"):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content), finish_reason=finish_reason)],
        usage=SimpleNamespace(prompt_tokens=10, completion_tokens=5, total_tokens=15),
    )


class TestLiteLLMProvider:
    """Test LiteLLMProvider."""

    @pytest.mark.asyncio
    async def test_chat_passes_settings(self):
        """Test credentials and sampling settings reach LiteLLM."""
        provider = LiteLLMProvider(
            api_key="sk-test",
            api_base="https://gateway.example",
            extra_headers={"X-App": "commandsense"},
        )
        with patch(
            "commandsense.providers.litellm_provider.acompletion",
            new=AsyncMock(return_value=fake_completion('{"intent": "weather"}')),
        ) as mock_completion:
            response = await provider.chat(
                [{"role": "user", "content": "hi"}], max_tokens=300, temperature=0.2
            )

        kwargs = mock_completion.call_args.kwargs
        assert kwargs["model"] == "gpt-3.5-turbo"
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["api_base"] == "https://gateway.example"
        assert kwargs["extra_headers"] == {"X-App": "commandsense"}
        assert kwargs["max_tokens"] == 300
        assert response.content == '{"intent": "weather"}'
        assert response.usage["total_tokens"] == 15
        assert not response.is_error

    @pytest.mark.asyncio
    async def test_chat_failure_returns_error_response(self):
        """Test exceptions are returned as error responses."""
        provider = LiteLLMProvider(api_key="sk-test")
        with patch(
            "commandsense.providers.litellm_provider.acompletion",
            new=AsyncMock(side_effect=RuntimeError("rate limited")),
        ):
            response = await provider.chat([{"role": "user", "content": "hi"}])

        assert response.is_error
        assert "rate limited" in response.content

    def test_default_model(self):
        """Test the default model."""
        assert LiteLLMProvider(default_model="openrouter/openai/gpt-4o-mini").get_default_model() == (
            "openrouter/openai/gpt-4o-mini"
        )

    @pytest.mark.asyncio
    async def test_json_mode_and_timeout(self):
        """Test JSON replies and the request timeout are requested when set."""
        provider = LiteLLMProvider(json_mode=True, request_timeout=5.0)
        with patch(
            "commandsense.providers.litellm_provider.acompletion",
            new=AsyncMock(return_value=fake_completion("{}")),
        ) as mock_completion:
            await provider.chat([{"role": "user", "content": "hi"}])

        kwargs = mock_completion.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["timeout"] == 5.0
        assert "api_key" not in kwargs

    @pytest.mark.asyncio
    async def test_plain_request_has_no_extras(self):
        """Test optional request fields are omitted by default."""
        provider = LiteLLMProvider()
        with patch(
            "commandsense.providers.litellm_provider.acompletion",
            new=AsyncMock(return_value=fake_completion("ok")),
        ) as mock_completion:
            response = await provider.chat([{"role": "user", "content": "hi"}])

        kwargs = mock_completion.call_args.kwargs
        assert "response_format" not in kwargs
        assert "timeout" not in kwargs
        assert response.text == "ok"

    @pytest.mark.asyncio
    async def test_empty_choices_is_error(self):
        """Test a reply without choices becomes an error response."""
        provider = LiteLLMProvider()
        with patch(
            "commandsense.providers.litellm_provider.acompletion",
            new=AsyncMock(return_value=SimpleNamespace(choices=[], usage=None)),
        ):
            response = await provider.chat([{"role": "user", "content": "hi"}])

        assert response.is_error
