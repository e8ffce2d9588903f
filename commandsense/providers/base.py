"""Chat-completion interface used by the remote classifier."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


Message = dict[str, Any]


@dataclass
class LLMResponse:
    """A single completion, or the error that replaced it."""
    content: str | None
    finish_reason: str = "stop"
    usage: dict[str, int] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.finish_reason == "error"

    @property
    def text(self) -> str:
        """Reply text with surrounding whitespace removed, empty if none."""
        return (self.content or "").strip()

    @classmethod
    def from_error(cls, error: BaseException | str) -> "LLMResponse":
        return cls(content=f"Error calling LLM: {error}", finish_reason="error")


class LLMProvider(ABC):
    """
    A chat-completion backend.

    ``chat`` reports transport and API failures as an error response
    (``LLMResponse.from_error``) instead of raising, so a classifier can
    fall back without special-casing each backend. Cancellation still
    propagates as ``asyncio.CancelledError``.
    """

    def __init__(self, api_key: str | None = None, api_base: str | None = None):
        self.api_key = api_key
        self.api_base = api_base

    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        Run one completion.

        Args:
            messages: Chat messages with 'role' and 'content'.
            model: Backend model id, the provider default when omitted.
            max_tokens: Reply length cap.
            temperature: Sampling temperature.
        """

    @abstractmethod
    def get_default_model(self) -> str:
        """Model used when ``chat`` gets none."""
