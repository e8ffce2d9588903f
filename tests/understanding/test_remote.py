"""Tests for the remote classifier adapter."""

import asyncio
import json
import time
from unittest.mock import AsyncMock, Mock

import pytest

from commandsense.providers.base import LLMProvider, LLMResponse
from commandsense.understanding.models import RemoteStatus
from commandsense.understanding.remote import (
    MalformedResponse,
    RemoteClassifier,
    parse_response,
)


def make_provider(content=None, finish_reason="stop", side_effect=None):
    provider = Mock()
    provider.get_default_model.return_value = "test-model"
    provider.chat = AsyncMock(
        return_value=LLMResponse(content=content, finish_reason=finish_reason),
        side_effect=side_effect,
    )
    return provider


class HangingProvider(LLMProvider):
    """Provider whose call never completes on its own."""

    def __init__(self):
        super().__init__()
        self.cancelled = False

    async def chat(self, messages, model=None, max_tokens=4096, temperature=0.7):
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise

    def get_default_model(self):
        return "hanging-model"


class TestParseResponse:
    """Test parse_response."""

    def test_full_payload(self):
        """Test every field is read."""
        content = json.dumps({
            "intent": "play_music",
            "confidence": 0.9,
            "entities": {"query": "lofi", "platform": "spotify"},
            "clarification": None,
            "suggested_response": "Playing lofi on Spotify",
        })
        result = parse_response(content, "put something chill on")
        assert result.intent == "play_music"
        assert result.confidence == 0.9
        assert result.entities == {"query": "lofi", "platform": "spotify"}
        assert result.needs_clarification is False
        assert result.clarification is None
        assert result.suggested_action == "Playing lofi on Spotify"
        assert result.normalized_input == "put something chill on"
        assert result.source == "remote"

    def test_markdown_fences(self):
        """Test fenced JSON is unwrapped."""
        content = '```json\n{"intent": "weather", "confidence": 0.7}\n```'
        result = parse_response(content, "is it cold")
        assert result.intent == "weather"
        assert result.confidence == 0.7

    def test_confidence_default_and_clamp(self):
        """Test missing confidence defaults to 0.5 and values are clamped."""
        assert parse_response('{"intent": "unknown"}', "x").confidence == 0.5
        assert parse_response('{"intent": "unknown", "confidence": 1.7}', "x").confidence == 1.0
        assert parse_response('{"intent": "unknown", "confidence": "high"}', "x").confidence == 0.5

    def test_entities_filtered(self):
        """Test empty, null-ish and non-string entities are dropped."""
        content = json.dumps({
            "intent": "open_app",
            "entities": {"app": "notepad", "query": "", "target": "null", "action": None, "count": 3},
        })
        assert parse_response(content, "x").entities == {"app": "notepad"}

    def test_clarification_sets_flag(self):
        """Test a clarification marks the result as needing one."""
        content = '{"intent": "play_music", "confidence": 0.4, "clarification": "Which song?"}'
        result = parse_response(content, "play something")
        assert result.needs_clarification is True
        assert result.clarification == "Which song?"

    @pytest.mark.parametrize("content", [
        "",
        "   ",
        "not json at all",
        "[1, 2, 3]",
        '{"confidence": 0.9}',
        '{"intent": ""}',
    ])
    def test_malformed(self, content):
        """Test unreadable replies raise MalformedResponse."""
        with pytest.raises(MalformedResponse):
            parse_response(content, "x")


class TestRemoteClassifier:
    """Test RemoteClassifier."""

    def test_build_messages(self):
        """Test the prompt carries both texts and the summaries."""
        remote = RemoteClassifier(make_provider(), model="m")
        messages = remote.build_messages(
            "opne it", "open jazz", "Recent actions:\n- play jazz", "User preferences:\n- a: b"
        )
        assert [m["role"] for m in messages] == ["system", "user"]
        assert "Respond only with JSON" in messages[0]["content"]
        user = messages[1]["content"]
        assert 'User said: "opne it"' in user
        assert 'Normalized: "open jazz"' in user
        assert "Recent actions:\n- play jazz" in user
        assert "User preferences:\n- a: b" in user
        assert "open_system_folder" in user

    def test_default_model_from_provider(self):
        """Test the provider's default model is used when none is given."""
        assert RemoteClassifier(make_provider()).model == "test-model"

    @pytest.mark.asyncio
    async def test_successful_call(self):
        """Test a good reply becomes an OK outcome."""
        provider = make_provider('{"intent": "weather", "confidence": 0.75, "entities": {"location": "oslo"}}')
        remote = RemoteClassifier(provider, model="gpt-test")

        outcome = await remote.classify("hows it outside", "hows it outside")

        assert outcome.ok
        assert outcome.status == RemoteStatus.OK
        assert outcome.result.intent == "weather"
        assert outcome.result.entities == {"location": "oslo"}
        provider.chat.assert_awaited_once()
        kwargs = provider.chat.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["max_tokens"] == 300
        assert kwargs["temperature"] == 0.2

    @pytest.mark.asyncio
    async def test_provider_error_response(self):
        """Test an error response is reported, not raised."""
        remote = RemoteClassifier(make_provider("Error calling LLM: boom", finish_reason="error"))
        outcome = await remote.classify("x", "x")
        assert outcome.status == RemoteStatus.UNAVAILABLE
        assert outcome.result is None
        assert "boom" in outcome.error

    @pytest.mark.asyncio
    async def test_provider_exception(self):
        """Test a raising provider is reported, not raised."""
        remote = RemoteClassifier(make_provider(side_effect=RuntimeError("connection reset")))
        outcome = await remote.classify("x", "x")
        assert outcome.status == RemoteStatus.UNAVAILABLE
        assert "connection reset" in outcome.error

    @pytest.mark.asyncio
    async def test_malformed_reply(self):
        """Test an unreadable reply is reported as malformed."""
        remote = RemoteClassifier(make_provider("I think they want music"))
        outcome = await remote.classify("x", "x")
        assert outcome.status == RemoteStatus.MALFORMED
        assert not outcome.ok

    @pytest.mark.asyncio
    async def test_timeout_returns_promptly_and_cancels(self):
        """Test a hanging call loses the race and is cancelled."""
        provider = HangingProvider()
        remote = RemoteClassifier(provider, timeout_s=0.05)

        start = time.monotonic()
        outcome = await remote.classify("x", "x")
        elapsed = time.monotonic() - start

        assert outcome.status == RemoteStatus.TIMEOUT
        assert outcome.result is None
        assert elapsed < 1.0

        await asyncio.sleep(0.01)
        assert provider.cancelled is True
