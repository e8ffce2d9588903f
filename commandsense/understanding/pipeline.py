"""Understanding pipeline - ties the stages together."""

from dataclasses import dataclass
from typing import Optional, Sequence

from loguru import logger

from commandsense.config.schema import Config
from commandsense.providers.litellm_provider import LiteLLMProvider

from .clarification import ClarificationGenerator
from .classifier import DeterministicClassifier
from .context import ContextResolver
from .models import ContextEntry, RemoteOutcome, RemoteStatus, StoreResult, UnderstandingResult
from .normalizer import LexicalNormalizer
from .remote import RemoteClassifier
from .slang import SlangRewriter
from .store import ContextHistory, PreferenceStore


FALLBACK_INTENT = "unknown"
FALLBACK_CONFIDENCE = 0.3

PREFERENCES_FILE = "preferences.json"
HISTORY_FILE = "context_history.json"


@dataclass
class UnderstandingContext:
    """Everything the pipeline needs that outlives a single request."""

    config: Config
    history: ContextHistory
    preferences: PreferenceStore
    remote: Optional[RemoteClassifier] = None

    @classmethod
    def create(cls, config: Optional[Config] = None) -> "UnderstandingContext":
        """Build stores under the configured data dir and the remote classifier if configured."""
        config = config or Config()
        data_path = config.data_path

        history = ContextHistory(
            capacity=config.understanding.history_size,
            path=data_path / HISTORY_FILE,
        )
        preferences = PreferenceStore(path=data_path / PREFERENCES_FILE)

        remote = None
        if config.remote_configured:
            provider = LiteLLMProvider(
                api_key=config.provider.api_key,
                api_base=config.provider.api_base,
                default_model=config.remote.model,
                extra_headers=config.provider.extra_headers,
                json_mode=config.remote.json_mode,
                request_timeout=config.remote.timeout_s,
            )
            remote = RemoteClassifier(
                provider=provider,
                model=config.remote.model,
                timeout_s=config.remote.timeout_s,
                max_tokens=config.remote.max_tokens,
                temperature=config.remote.temperature,
            )
        else:
            logger.info("Remote classifier not configured, using local rules only")

        return cls(config=config, history=history, preferences=preferences, remote=remote)


class UnderstandingPipeline:
    """
    Turn a raw utterance into an ``UnderstandingResult``.

    Stages run in order: lexical normalization, slang rewriting, context
    resolution, then the rule cascade. A local result at or above
    ``local_confidence_threshold`` is final. Otherwise the remote classifier
    (when configured) gets one timed attempt, and its result replaces the
    local one only if it arrives in time and parses. Anything still below
    ``clarification_threshold`` gets a follow-up question.
    """

    def __init__(self, context: UnderstandingContext):
        self.context = context
        settings = context.config.understanding
        self.normalizer = LexicalNormalizer(max_distance=settings.max_typo_distance)
        self.slang = SlangRewriter()
        self.resolver = ContextResolver()
        self.classifier = DeterministicClassifier()
        self.clarifier = ClarificationGenerator()

    async def understand(
        self,
        text: str,
        attachments: Optional[Sequence[str]] = None,
    ) -> UnderstandingResult:
        """
        Interpret one utterance. Never raises for bad input or remote failures.

        Args:
            text: Raw user input
            attachments: Attached file paths/URIs, if any

        Returns:
            The final, possibly clarification-carrying, result
        """
        settings = self.context.config.understanding
        attachments = tuple(attachments or ())

        normalized = self.normalizer.normalize(text)
        rewritten = self.slang.rewrite(normalized)
        resolved = self.resolver.resolve(rewritten, self.context.history.recent())

        result = self.classifier.classify(
            resolved,
            attachments=attachments,
            preferences=self.context.preferences.snapshot(),
        )

        if result is not None and result.confidence >= settings.local_confidence_threshold:
            return result

        outcome = await self.classify_remote(text, resolved)
        if outcome.ok:
            result = outcome.result
        else:
            logger.debug(f"Remote classification skipped: {outcome.status.value}")

        if result is None:
            result = UnderstandingResult(
                normalized_input=resolved,
                intent=FALLBACK_INTENT,
                confidence=FALLBACK_CONFIDENCE,
                source="fallback",
            )

        if result.confidence < settings.clarification_threshold and not result.needs_clarification:
            result.clarification = self.clarifier.generate(resolved)
            result.needs_clarification = True

        logger.info(
            f"Understood '{text}' as {result.intent} ({result.confidence:.2f}, {result.source})"
        )
        return result

    async def classify_remote(self, original: str, normalized: str) -> RemoteOutcome:
        """Ask the remote classifier, or report it as unconfigured."""
        if self.context.remote is None:
            return RemoteOutcome(RemoteStatus.UNCONFIGURED, error="no remote classifier configured")
        return await self.context.remote.classify(
            original=original,
            normalized=normalized,
            context_summary=self.context_summary(),
            preferences_summary=self.preferences_summary(),
        )

    def add_context(self, action: str, entity: str, result: Optional[str] = None) -> StoreResult:
        """Record a dispatched action so later "it"/"again" can refer to it."""
        return self.context.history.append(
            ContextEntry(action=action, main_entity=entity, result=result)
        )

    def learn_preference(self, key: str, value: str) -> StoreResult:
        return self.context.preferences.set(key, value)

    def context_summary(self, limit: int = 3) -> str:
        entries = self.context.history.recent(limit)
        if not entries:
            return ""
        lines = [f"- {entry.action} {entry.main_entity}" for entry in entries]
        return "Recent actions:\n" + "\n".join(lines)

    def preferences_summary(self) -> str:
        prefs = self.context.preferences.snapshot()
        if not prefs:
            return ""
        lines = [f"- {key}: {value}" for key, value in prefs.items()]
        return "User preferences:\n" + "\n".join(lines)
