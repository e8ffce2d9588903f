"""Context resolver - pronoun and repeat references over recent actions."""

import re
from typing import Sequence

from loguru import logger

from .models import ContextEntry


DEICTIC_PATTERN = re.compile(r"\b(?:that one|this one|the same|it|that)\b", re.IGNORECASE)
REPEAT_PATTERN = re.compile(r"\bagain\b", re.IGNORECASE)
REPEAT_PHRASES = frozenset({"repeat", "repeat that", "do that again", "do it again"})

ACTION_VERBS = frozenset({
    "play", "open", "close", "search", "pause", "stop", "next", "previous",
    "resume", "start", "shutdown", "restart", "lock", "sleep", "organize",
    "scan", "draw", "paint", "generate", "create", "show", "find", "mute",
})


class ContextResolver:
    """
    Resolve "it"/"that"/"again" style references using recent actions.

    Only the most recent entry is consulted. With no history the
    utterance passes through untouched, leaving the ambiguous word for
    the classifier to fail on so a clarification is produced downstream.
    """

    def resolve(self, text: str, history: Sequence[ContextEntry]) -> str:
        """Return ``text`` with references to the last action filled in."""
        if not history:
            return text

        last = history[-1]
        result = text

        if last.main_entity and DEICTIC_PATTERN.search(result):
            result = DEICTIC_PATTERN.sub(lambda _: last.main_entity, result)
            logger.debug(f"[Context] Resolved reference to '{last.main_entity}'")

        stripped = " ".join(text.lower().split())
        if REPEAT_PATTERN.search(result) or stripped in REPEAT_PHRASES:
            if last.action and last.main_entity:
                if not self._has_other_verb(result, last.action):
                    repeated = f"{last.action} {last.main_entity}"
                    logger.debug(f"[Context] Resolved repeat to '{repeated}'")
                    return repeated
                # A different verb keeps the new action, "open jazz again" -> "open jazz"
                result = " ".join(REPEAT_PATTERN.sub(" ", result).split())

        return result

    def _has_other_verb(self, text: str, last_action: str) -> bool:
        action = last_action.lower()
        for token in re.findall(r"[a-z]+", text.lower()):
            if token in ACTION_VERBS and token != action and not action.startswith(f"{token}_"):
                return True
        return False
