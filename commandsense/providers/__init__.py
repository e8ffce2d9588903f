"""LLM provider abstraction module."""

from commandsense.providers.base import LLMProvider, LLMResponse, Message
from commandsense.providers.litellm_provider import LiteLLMProvider

__all__ = ["LLMProvider", "LLMResponse", "LiteLLMProvider", "Message"]
