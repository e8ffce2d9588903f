"""Lexical normalizer - per-token typo correction against command vocabulary."""

from typing import Optional

from loguru import logger
from rapidfuzz.distance import Levenshtein


# Canonical command words and their known misspellings.
# Declaration order is the tie-break order for fuzzy matches.
TYPO_MAP: dict[str, tuple[str, ...]] = {
    # Music/Media
    "play": ("paly", "plya", "pla", "ply", "plau", "plaay", "plat", "pley", "palya"),
    "spotify": ("spotfy", "spotiffy", "spotifi", "sptify", "spotiy", "spotfiy", "sptoify", "spotifiy", "spoitfy"),
    "youtube": ("youtub", "yotube", "utube", "youube", "youtbe", "yuotube", "youttube", "youtubee"),
    "music": ("musci", "muisc", "msuic", "musik", "mucis", "muscic", "musuc"),
    "song": ("snog", "sogn", "songg", "snong", "soong", "sonf"),
    "pause": ("paus", "pasue", "puase", "pausee", "pauze", "pawse"),
    "volume": ("volum", "volumne", "voulme", "vlume", "vol", "volune", "volumee"),

    # Apps
    "chrome": ("chrom", "crhome", "chorme", "gogle", "chrme", "chromee"),
    "discord": ("discrod", "disocrd", "dicord", "discor", "disord", "discordd"),
    "notepad": ("notpad", "notepadd", "notepd", "notepda", "noetpad"),
    "settings": ("setings", "settigns", "settngs", "sttings", "settingss", "setttings"),
    "browser": ("broswer", "brwoser", "browsr", "broswe", "browsre"),
    "calculator": ("calculater", "calcualtor", "calcultor", "calc", "calulator"),

    # Actions
    "open": ("opne", "opn", "oepn", "oen", "openn", "oopen", "opem"),
    "close": ("clsoe", "closee", "clos", "cloe", "closse", "colse"),
    "search": ("serach", "seach", "serch", "saerch", "searhc", "searh"),
    "shutdown": ("shutdwon", "shutdonw", "shtdown", "shutdow", "shutdwn", "shutown"),
    "restart": ("restrat", "restar", "restrt", "rstart", "resart", "restaret"),
    "organize": ("orginize", "orgainze", "organiz", "oraganize", "ogranize", "organise", "orgnaize"),

    # System
    "computer": ("compter", "computr", "comuter", "pc", "laptop", "compueter", "computre"),
    "screen": ("scren", "screne", "sceen", "scrn", "screeen", "scree"),
    "file": ("fiel", "flie", "fil", "filee", "fle", "fiels"),
    "folder": ("foldr", "fodler", "floder", "flder", "foler", "folderr"),
    "download": ("donwload", "downlaod", "downlod", "donload", "dwonload", "downoad"),
    "desktop": ("destkop", "dekstop", "destop", "desktp", "desktoop"),

    # Weather
    "weather": ("wether", "wheather", "waether", "weathr", "weahter", "weathe"),
    "temperature": ("temprature", "temperture", "tempature", "temperatur"),
}

# Real words that sit close to a canonical word but are never typos of it.
PROTECTED_WORDS: frozenset = frozenset({
    # near "play"
    "plan", "clay", "pray", "ploy", "player", "played",
    # near "song"
    "sing", "sung", "sang", "long", "strong",
    # near "open"
    "oven", "omen",
    # near "file"
    "fire", "fine", "five", "mile", "pile", "tile", "fill", "film",
    # near "pause"
    "cause", "parse",
    # near "close"
    "clone", "chose",
    # near "browser" / "restart"
    "browse", "restore",
    # near "volume" / "screen" / "search"
    "column", "scream", "street", "starch",
    # near "folder" / "discord" / "organize" / "computer"
    "finder", "holder", "discard", "organic", "commuter",
    # near "weather"
    "whether", "feather", "leather", "heather",
})


def _build_variant_index(table: dict[str, tuple[str, ...]]) -> dict[str, str]:
    """Map every typo variant to its canonical word, first declaration wins."""
    index: dict[str, str] = {}
    for canonical, variants in table.items():
        for variant in variants:
            index.setdefault(variant, canonical)
    return index


class LexicalNormalizer:
    """
    Correct per-word typos against a small vocabulary of command words.

    Each token is checked in order:
    1. already canonical, kept
    2. a listed typo variant, replaced by its canonical word
    3. a protected real word, kept
    4. fuzzy match: the canonical word with the smallest Levenshtein
       distance wins if within the allowed distance, ties going to the
       earlier entry in ``TYPO_MAP``

    The allowed distance shrinks for short tokens: tokens of three letters
    or fewer are only corrected through the variant lists, tokens of four
    or five letters tolerate one edit, longer tokens ``max_distance``.
    Without this, ordinary words like "when", "some" or "like" sit two
    edits from "open", "song" and "file".
    """

    def __init__(
        self,
        typo_map: Optional[dict[str, tuple[str, ...]]] = None,
        max_distance: int = 2,
        protected_words: Optional[frozenset] = None,
    ):
        self.typo_map = typo_map if typo_map is not None else TYPO_MAP
        self.max_distance = max_distance
        self.protected_words = protected_words if protected_words is not None else PROTECTED_WORDS
        self._canonical = tuple(self.typo_map)
        self._variants = _build_variant_index(self.typo_map)

    def normalize(self, text: str) -> str:
        """Lowercase, split on whitespace and correct each token."""
        tokens = text.lower().split()
        corrected = [self.correct_token(token) for token in tokens]
        result = " ".join(corrected)
        if result != " ".join(tokens):
            logger.debug(f"[Normalizer] '{text}' -> '{result}'")
        return result

    def correct_token(self, token: str) -> str:
        """Return the canonical word for ``token``, or the token unchanged."""
        if token in self.typo_map:
            return token

        canonical = self._variants.get(token)
        if canonical is not None:
            return canonical

        if token in self.protected_words:
            return token

        allowed = self._allowed_distance(token)
        if allowed == 0:
            return token

        best: Optional[str] = None
        best_distance = allowed + 1
        for candidate in self._canonical:
            distance = Levenshtein.distance(token, candidate, score_cutoff=allowed)
            # Strictly smaller keeps the earliest candidate on ties
            if distance < best_distance:
                best, best_distance = candidate, distance

        return best if best is not None else token

    def _allowed_distance(self, token: str) -> int:
        if len(token) <= 3:
            return 0
        if len(token) <= 5:
            return min(1, self.max_distance)
        return self.max_distance
