"""LiteLLM-backed provider for remote classification."""

from typing import Any

import litellm
from litellm import acompletion
from loguru import logger

from commandsense.providers.base import LLMProvider, LLMResponse, Message


class LiteLLMProvider(LLMProvider):
    """
    Chat completions through LiteLLM.

    The model string selects the backend (``gpt-3.5-turbo``,
    ``openrouter/openai/gpt-4o-mini``, ``ollama/llama3``...). With
    ``json_mode`` the request asks for a JSON-object reply; backends that
    do not support ``response_format`` have it dropped by LiteLLM.
    ``request_timeout`` bounds the HTTP call itself, separately from the
    classifier's own race.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "gpt-3.5-turbo",
        extra_headers: dict[str, str] | None = None,
        json_mode: bool = False,
        request_timeout: float | None = None,
    ):
        super().__init__(api_key, api_base)
        self.default_model = default_model
        self.extra_headers = extra_headers or {}
        self.json_mode = json_mode
        self.request_timeout = request_timeout

        litellm.suppress_debug_info = True
        litellm.drop_params = True

    def _build_request(
        self,
        messages: list[Message],
        model: str | None,
        max_tokens: int,
        temperature: float,
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": model or self.default_model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        # Keys are passed per request, never exported to the environment
        if self.api_key:
            request["api_key"] = self.api_key
        if self.api_base:
            request["api_base"] = self.api_base
        if self.extra_headers:
            request["extra_headers"] = self.extra_headers
        if self.json_mode:
            request["response_format"] = {"type": "json_object"}
        if self.request_timeout is not None:
            request["timeout"] = self.request_timeout
        return request

    async def chat(
        self,
        messages: list[Message],
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        request = self._build_request(messages, model, max_tokens, temperature)
        try:
            response = await acompletion(**request)
        except Exception as e:
            logger.debug(f"LiteLLM call to {request['model']} failed: {e}")
            return LLMResponse.from_error(e)
        return self._parse_response(response)

    def _parse_response(self, response: Any) -> LLMResponse:
        if not getattr(response, "choices", None):
            return LLMResponse.from_error("response had no choices")

        choice = response.choices[0]
        usage: dict[str, int] = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
            logger.debug(f"LiteLLM usage: {usage['total_tokens']} tokens")

        return LLMResponse(
            content=choice.message.content,
            finish_reason=choice.finish_reason or "stop",
            usage=usage,
        )

    def get_default_model(self) -> str:
        return self.default_model
