"""Deterministic intent classifier - the ordered rule cascade."""

from typing import Mapping, Optional, Sequence

from loguru import logger

from .models import UnderstandingResult, Utterance
from .rules import DEFAULT_RULES, IntentRule, RuleInput


class DeterministicClassifier:
    """
    Walk an ordered list of intent rules and return the first match.

    Rule order encodes priority; later rules are never evaluated once one
    fires. No match returns None rather than a low-confidence guess, which
    is what lets the pipeline escalate to the remote classifier.
    """

    def __init__(self, rules: Optional[Sequence[IntentRule]] = None):
        self.rules: tuple[IntentRule, ...] = tuple(rules) if rules is not None else DEFAULT_RULES

    def classify(
        self,
        text: str,
        attachments: Sequence[str] = (),
        preferences: Optional[Mapping[str, str]] = None,
    ) -> Optional[UnderstandingResult]:
        """
        Classify normalized text.

        Args:
            text: Normalized, slang-rewritten, context-resolved text
            attachments: Attached file paths/URIs
            preferences: Learned preferences (e.g. default_music_platform)

        Returns:
            UnderstandingResult from the first matching rule, or None
        """
        data = RuleInput(
            text=text.lower(),
            utterance=Utterance(text=text, attachments=tuple(attachments)),
            preferences=preferences or {},
        )

        for rule in self.rules:
            match = rule.apply(data)
            if match is None:
                continue
            logger.debug(
                f"[Classifier] {match.rule} -> {match.intent} "
                f"({match.confidence:.2f}) entities={match.entities}"
            )
            return UnderstandingResult(
                normalized_input=text,
                intent=match.intent,
                confidence=match.confidence,
                entities=match.entities,
                source="local",
            )

        logger.debug(f"[Classifier] No rule matched '{text}'")
        return None
