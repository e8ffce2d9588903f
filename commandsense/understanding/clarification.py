"""Clarification questions for low-confidence results."""

import re

from .rules import OBJECT


GENERIC_CLARIFICATION = "Could you tell me more about what you'd like me to do?"

# (verb, question) pairs, checked in order
CLARIFICATIONS: tuple[tuple[str, str], ...] = (
    ("play", "What would you like me to play?"),
    ("open", "What app would you like me to open?"),
    ("search", "What would you like me to search for?"),
)


class ClarificationGenerator:
    """Pick a follow-up question from the verbs present in the utterance."""

    def generate(self, text: str) -> str:
        lower = text.lower()
        for verb, question in CLARIFICATIONS:
            # The verb is there but nothing usable follows it
            if re.search(rf"\b{verb}\b", lower) and not re.search(rf"\b{verb}\s+{OBJECT}", lower):
                return question
        return GENERIC_CLARIFICATION
