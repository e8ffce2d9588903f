"""Slang rewriter - casual phrasing to canonical command phrasing."""

import re
from typing import Optional

from loguru import logger


SLANG_MAP: dict[str, str] = {
    # Music requests
    "put on": "play",
    "throw on": "play",
    "bump": "play",
    "blast": "play",
    "crank up": "play",
    "lemme hear": "play",
    "i wanna hear": "play",
    "i want to hear": "play",
    "can you play": "play",
    "could you play": "play",
    "would you play": "play",

    # Volume
    "turn it up": "volume up",
    "louder": "volume up",
    "crank it": "volume up",
    "turn it down": "volume down",
    "quieter": "volume down",
    "shh": "mute",
    "shut up": "mute",
    "silence": "mute",

    # Media control
    "skip": "next",
    "skip this": "next",
    "next one": "next",
    "go back": "previous",
    "last one": "previous",
    "stop it": "stop",
    "hold on": "pause",
    "wait": "pause",

    # Apps
    "fire up": "open",
    "boot up": "open",
    "start up": "open",
    "launch": "open",
    "run": "open",
    "kill": "close",
    "exit": "close",
    "quit": "close",
    "end": "close",

    # System
    "turn off": "shutdown",
    "power off": "shutdown",
    "shut it down": "shutdown",
    "shut down": "shutdown",
    "reboot": "restart",
    "lock it": "lock",
    "lock up": "lock",

    # General
    "what's": "what is",
    "whats": "what is",
    "where's": "where is",
    "who's": "who is",
    "how's": "how is",
    "gonna": "going to",
    "wanna": "want to",
    "gotta": "got to",
    "kinda": "kind of",
    "sorta": "sort of",
    "dunno": "don't know",
    "lemme": "let me",
    "gimme": "give me",
}


class SlangRewriter:
    """
    Rewrite casual or idiomatic phrases into canonical command phrasing.

    All phrases are compiled into one alternation, longest phrase first,
    and applied in a single left-to-right pass. A longer phrase therefore
    wins over any shorter phrase it overlaps ("turn it up" over "turn it"),
    every non-overlapping phrase in the utterance is rewritten, and
    replacement text is never rescanned.
    """

    def __init__(self, slang_map: Optional[dict[str, str]] = None):
        self.slang_map = {
            phrase.lower(): canonical
            for phrase, canonical in (slang_map if slang_map is not None else SLANG_MAP).items()
        }
        phrases = sorted(self.slang_map, key=lambda p: (-len(p), p))
        alternation = "|".join(
            re.escape(p).replace(r"\ ", r"\s+") for p in phrases
        )
        # Word boundaries stop "end" matching inside "weekend"
        self._pattern = re.compile(rf"(?<!\w)(?:{alternation})(?!\w)", re.IGNORECASE) if phrases else None

    def rewrite(self, text: str) -> str:
        """Apply the slang table to ``text``."""
        if self._pattern is None:
            return text
        result = self._pattern.sub(self._replace, text)
        if result != text:
            logger.debug(f"[Slang] '{text}' -> '{result}'")
        return result

    def _replace(self, match: re.Match) -> str:
        key = " ".join(match.group(0).lower().split())
        return self.slang_map[key]
