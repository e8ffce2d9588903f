"""Remote LLM classifier for utterances the local rules are unsure about."""

import asyncio
import json
from typing import Any, Optional

from loguru import logger

from commandsense.providers.base import LLMProvider, LLMResponse, Message

from .models import RemoteOutcome, RemoteStatus, UnderstandingResult


SYSTEM_PROMPT = (
    "You understand natural language perfectly, including typos, slang, "
    "and context. Respond only with JSON."
)

REMOTE_INTENTS = (
    "play_music", "media_control", "volume_control", "open_app", "close_app",
    "open_folder", "open_system_folder", "web_search", "weather",
    "organize_files", "generate_image", "analyze_image", "power_control",
    "screenshot", "system_scan", "unknown",
)

UNDERSTANDING_PROMPT = """You are an intelligent assistant that understands what users REALLY mean, even with typos, slang, or vague requests.

User said: "{original}"
Normalized: "{normalized}"
{context_summary}
{preferences_summary}

Analyze what the user wants and respond with JSON:
{{
  "intent": "{intents}",
  "confidence": 0.0-1.0,
  "entities": {{
    "query": "main subject/search term",
    "app": "application name",
    "action": "specific action",
    "platform": "spotify/youtube/etc",
    "target": "file/folder path"
  }},
  "clarification": "question to ask if unclear (null if clear)",
  "suggested_response": "what to say/do"
}}

Examples of understanding vague requests:
- "that song from yesterday" -> use context to find what was played
- "the usual" -> check user preferences
- "do the thing" -> check recent actions
- "make it louder" -> volume up
- "put something on" -> play music (ask what genre if no preference)"""


class MalformedResponse(ValueError):
    """The remote reply could not be read as an understanding result."""


def _strip_fences(content: str) -> str:
    content = content.strip()
    if "```json" in content:
        content = content.split("```json")[1].split("```")[0].strip()
    elif "```" in content:
        content = content.split("```")[1].split("```")[0].strip()
    return content


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == "null":
        return None
    return text


def parse_response(content: str, normalized: str) -> UnderstandingResult:
    """
    Read the remote JSON reply into an ``UnderstandingResult``.

    Raises:
        MalformedResponse: empty content, invalid JSON, a non-object payload
            or a missing ``intent``.
    """
    if not content or not content.strip():
        raise MalformedResponse("empty response")

    try:
        data = json.loads(_strip_fences(content))
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponse("expected a JSON object")

    intent = _optional_text(data.get("intent"))
    if intent is None:
        raise MalformedResponse("missing intent")

    try:
        confidence = float(data.get("confidence", 0.5))
    except (TypeError, ValueError):
        confidence = 0.5

    entities: dict[str, str] = {}
    raw_entities = data.get("entities")
    if isinstance(raw_entities, dict):
        for key, value in raw_entities.items():
            if not isinstance(value, str):
                continue
            text = _optional_text(value)
            if text is not None:
                entities[str(key)] = text

    clarification = _optional_text(data.get("clarification"))

    return UnderstandingResult(
        normalized_input=normalized,
        intent=intent,
        confidence=confidence,
        entities=entities,
        needs_clarification=clarification is not None,
        clarification=clarification,
        suggested_action=_optional_text(data.get("suggested_response")),
        source="remote",
    )


def _consume_result(task: asyncio.Task) -> None:
    # Abandoned calls may still fail after cancellation; read the error so
    # asyncio does not report it as never retrieved.
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"[Remote] Abandoned call finished with error: {error}")


class RemoteClassifier:
    """
    Ask an LLM to classify an utterance, bounded by a timeout.

    The provider call runs as its own task raced against ``timeout_s``. If
    the timeout wins the call is cancelled and left to finish on its own;
    the caller never waits for it and its outcome is discarded.
    """

    def __init__(
        self,
        provider: LLMProvider,
        model: Optional[str] = None,
        timeout_s: float = 5.0,
        max_tokens: int = 300,
        temperature: float = 0.2,
    ):
        self.provider = provider
        self.model = model or provider.get_default_model()
        self.timeout_s = timeout_s
        self.max_tokens = max_tokens
        self.temperature = temperature

    def build_messages(
        self,
        original: str,
        normalized: str,
        context_summary: str = "",
        preferences_summary: str = "",
    ) -> list[Message]:
        prompt = UNDERSTANDING_PROMPT.format(
            original=original,
            normalized=normalized,
            context_summary=context_summary,
            preferences_summary=preferences_summary,
            intents="|".join(REMOTE_INTENTS),
        )
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    async def classify(
        self,
        original: str,
        normalized: str,
        context_summary: str = "",
        preferences_summary: str = "",
    ) -> RemoteOutcome:
        """
        Classify ``normalized`` remotely.

        Never raises: timeouts, provider failures and unreadable replies all
        come back as a non-OK ``RemoteOutcome``.
        """
        messages = self.build_messages(original, normalized, context_summary, preferences_summary)
        task = asyncio.create_task(
            self.provider.chat(
                messages=messages,
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        )

        done, _ = await asyncio.wait({task}, timeout=self.timeout_s)
        if task not in done:
            task.add_done_callback(_consume_result)
            task.cancel()
            logger.warning(f"[Remote] Classification timed out after {self.timeout_s}s")
            return RemoteOutcome(RemoteStatus.TIMEOUT, error=f"timed out after {self.timeout_s}s")

        if task.cancelled():
            return RemoteOutcome(RemoteStatus.UNAVAILABLE, error="call was cancelled")

        error = task.exception()
        if error is not None:
            logger.warning(f"[Remote] Provider call failed: {error}")
            return RemoteOutcome(RemoteStatus.UNAVAILABLE, error=str(error))

        response: LLMResponse = task.result()
        if response.is_error:
            logger.warning(f"[Remote] Provider returned an error: {response.content}")
            return RemoteOutcome(RemoteStatus.UNAVAILABLE, error=response.content)

        try:
            result = parse_response(response.text, normalized)
        except MalformedResponse as e:
            logger.warning(f"[Remote] Unreadable reply: {e}")
            return RemoteOutcome(RemoteStatus.MALFORMED, error=str(e))

        logger.debug(f"[Remote] intent={result.intent} confidence={result.confidence:.2f}")
        return RemoteOutcome(RemoteStatus.OK, result=result)
