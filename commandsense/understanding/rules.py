"""Ordered intent rules and their entity extractors.

Each ``IntentRule`` pairs a trigger (a regex, an extra condition, or both)
with the intent it emits, a fixed confidence and an entity extractor.
``DEFAULT_RULES`` is the priority order the classifier walks; the first
rule that fires wins.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

from .models import Utterance


@dataclass(frozen=True)
class RuleInput:
    """What a rule sees: normalized text, attachments and learned preferences."""
    text: str
    utterance: Utterance = field(default_factory=lambda: Utterance(""))
    preferences: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RuleMatch:
    """A fired rule's output."""
    intent: str
    confidence: float
    entities: dict[str, str]
    rule: str


def _no_entities(data: RuleInput) -> dict[str, str]:
    return {}


@dataclass(frozen=True)
class IntentRule:
    """One step of the classification cascade."""

    name: str
    intent: str
    confidence: float
    pattern: Optional[re.Pattern] = None
    condition: Optional[Callable[[RuleInput], bool]] = None
    extract: Callable[[RuleInput], dict[str, str]] = _no_entities
    # Lets one rule emit sibling intents (open_app / close_app)
    choose_intent: Optional[Callable[[RuleInput], str]] = None

    def matches(self, data: RuleInput) -> bool:
        if self.pattern is not None and not self.pattern.search(data.text):
            return False
        if self.condition is not None and not self.condition(data):
            return False
        return self.pattern is not None or self.condition is not None

    def apply(self, data: RuleInput) -> Optional[RuleMatch]:
        """Return a match when the rule fires, else None."""
        if not self.matches(data):
            return None
        intent = self.choose_intent(data) if self.choose_intent else self.intent
        return RuleMatch(
            intent=intent,
            confidence=self.confidence,
            entities=self.extract(data),
            rule=self.name,
        )


def _has(pattern: str, text: str) -> bool:
    return re.search(pattern, text) is not None


def _strip_trailing(text: str) -> str:
    return text.strip().rstrip(".!?").strip()


# ==================== IMAGE ANALYSIS ====================

QUESTION_PATTERN = re.compile(
    r"\b(what|explain|describe|analyze|tell me|show me|read|ocr|text|mean|this|that|it)\b"
    r"|\b(what does|what is|whats|can you|could you)\b"
)


def _asks_about_image(data: RuleInput) -> bool:
    if not data.utterance.has_images:
        return False
    # Short messages sent with an image are almost always about the image
    return bool(QUESTION_PATTERN.search(data.text)) or "?" in data.text or len(data.text) < 50


def _image_entities(data: RuleInput) -> dict[str, str]:
    return {
        "image_path": data.utterance.image_attachments[0],
        "question": data.text,
    }


# ==================== MUSIC ====================

PLATFORMS = (
    "spotify", "youtube", "soundcloud", "apple music", "itunes",
    "amazon music", "deezer", "tidal", "pandora",
)

# An object word that is not an unresolved pronoun
OBJECT = r"(?!(?:it|that|this|them|to|for)\b)\w+"

PLAY_PATTERN = re.compile(r"\b(play|listen|hear|put on)\b")
PLAY_OBJECT_PATTERN = re.compile(rf"\b(?:play|listen(?:\s+to)?|hear|put\s+on)\s+{OBJECT}")
OPEN_THEN_PLAY = re.compile(r"open\s+\w+[,\s]+(?:and\s+)?(?:play|listen to|hear)\s+(.+)")
PLAY_QUERY = re.compile(r"(?:play|listen to|hear)\s+(.+?)(?:\s+on\s+|\s*$)")


def extract_music_query(text: str) -> str:
    """Pull the free-text music query; empty means "just launch the app"."""
    lower = text.strip().lower()
    for platform in PLATFORMS:
        if lower in (f"play {platform}", f"open {platform}", f"launch {platform}"):
            return ""

    match = OPEN_THEN_PLAY.search(lower)
    if match:
        query = _strip_trailing(match.group(1))
        if query:
            return query

    match = PLAY_QUERY.search(lower)
    if match:
        query = _strip_trailing(match.group(1))
        for platform in PLATFORMS:
            if query == platform:
                return ""
            if query.endswith(f" on {platform}"):
                query = query[: -len(platform) - 4].strip()
        return query

    return lower


def detect_platform(text: str, preferences: Mapping[str, str]) -> str:
    lower = text.lower()
    if "spotify" in lower:
        return "spotify"
    if "youtube music" in lower:
        return "youtube_music"
    if "youtube" in lower:
        return "youtube"
    if "soundcloud" in lower:
        return "soundcloud"
    if "apple" in lower:
        return "apple_music"
    return preferences.get("default_music_platform", "spotify")


def _music_entities(data: RuleInput) -> dict[str, str]:
    return {
        "query": extract_music_query(data.text),
        "platform": detect_platform(data.text, data.preferences),
    }


# ==================== MEDIA / VOLUME ====================

MEDIA_PATTERN = re.compile(r"\b(pause|stop|next|previous|skip|resume)\b")
VOLUME_PATTERN = re.compile(r"\b(volume|mute|unmute|louder|quieter)\b")


def extract_media_action(text: str) -> str:
    if _has(r"\b(pause|stop)\b", text):
        return "pause"
    if _has(r"\b(resume|continue)\b", text):
        return "play"
    if _has(r"\b(next|skip)\b", text):
        return "next"
    if _has(r"\b(previous|back)\b", text):
        return "previous"
    return "pause"


def extract_volume_action(text: str) -> str:
    if _has(r"\b(up|louder|increase|raise)\b", text):
        return "up"
    if _has(r"\b(down|quieter|decrease|lower)\b", text):
        return "down"
    # "unmute" first, it contains "mute"
    if _has(r"\bunmute\b", text):
        return "unmute"
    if _has(r"\bmute\b", text):
        return "mute"
    return "up"


# ==================== FOLDERS ====================

SYSTEM_FOLDER_PATTERN = re.compile(
    r"\b(program\s*data|programdata|appdata|app\s*data|roaming|local\s*appdata|localappdata"
    r"|temp|windows|system32|program\s*files)\b"
)
SYSTEM_FOLDER_VERB = re.compile(r"\b(open|go to|show|browse|access)\b")
FOLDER_PATTERN = re.compile(
    r"\b(open|go to|show|browse)\b.*\b(folders?|directory|downloads?|documents?|desktop|pictures?|music|videos?)\b"
)


def extract_system_folder(text: str) -> str:
    lower = text.lower()
    if _has(r"program\s*data", lower):
        return "programdata"
    if _has(r"appdata\s+local|local\s*appdata", lower):
        return "localappdata"
    if _has(r"appdata\s+roaming|\broaming\b", lower):
        return "roaming"
    if _has(r"app\s*data", lower):
        return "appdata"
    if _has(r"\btemp\b", lower):
        return "temp"
    if "system32" in lower:
        return "system32"
    if _has(r"program\s*files\s*\(?x86\)?", lower):
        return "programfilesx86"
    if _has(r"program\s*files", lower):
        return "programfiles"
    if "windows" in lower:
        return "windows"
    return "programdata"


def extract_folder_target(text: str, default: str = "desktop") -> str:
    lower = text.lower()
    if "desktop" in lower:
        return "desktop"
    if "download" in lower:
        return "downloads"
    if "document" in lower:
        return "documents"
    if "picture" in lower or "photo" in lower:
        return "pictures"
    if "music" in lower:
        return "music"
    if "video" in lower:
        return "videos"
    return default


def _system_folder_entities(data: RuleInput) -> dict[str, str]:
    return {"folder": extract_system_folder(data.text)}


def _folder_entities(data: RuleInput) -> dict[str, str]:
    return {"folder": extract_folder_target(data.text)}


# ==================== APPS / POWER ====================

APP_PATTERN = re.compile(rf"\b(open|close|launch|start|kill|quit)\b\s+{OBJECT}")
CLOSE_PATTERN = re.compile(r"\b(close|kill|quit|exit)\b")
APP_NAME = re.compile(r"(?:open|close|launch|start|kill|quit)\s+(.+)")
POWER_PATTERN = re.compile(r"\b(shutdown|shut\s+down|restart|reboot|sleep|lock|hibernate)\b")


def extract_app_name(text: str) -> str:
    match = APP_NAME.search(text)
    return _strip_trailing(match.group(1)) if match else ""


def extract_power_action(text: str) -> str:
    if _has(r"\b(shutdown|shut\s+down|turn\s+off)\b", text):
        return "shutdown"
    if _has(r"\b(restart|reboot)\b", text):
        return "restart"
    if _has(r"\bsleep\b", text):
        return "sleep"
    if _has(r"\block\b", text):
        return "lock"
    if _has(r"\bhibernate\b", text):
        return "hibernate"
    return "shutdown"


def _app_intent(data: RuleInput) -> str:
    return "close_app" if CLOSE_PATTERN.search(data.text) else "open_app"


# ==================== IMAGE GENERATION ====================

IMAGE_GEN_PATTERN = re.compile(
    r"\b(generate|create|make|draw|paint|illustrate|design)\b.*\b(image|picture|photo|art|illustration|drawing)\b"
    r"|^(draw|paint)\s+"
)

_IMAGE_PREFIXES = (
    "generate me an image of ", "generate an image of ", "generate image of ",
    "generate me a picture of ", "generate a picture of ", "generate picture of ",
    "create me an image of ", "create an image of ", "create image of ",
    "create me a picture of ", "create a picture of ", "create picture of ",
    "draw me an image of ", "draw an image of ", "draw image of ",
    "draw me a picture of ", "draw a picture of ", "draw picture of ",
    "make me an image of ", "make an image of ", "make image of ",
    "make me a picture of ", "make a picture of ", "make picture of ",
    "paint me ", "paint a ", "paint ",
    "illustrate ", "design ",
    "generate me ", "generate ", "create me ", "create ",
    "draw me ", "draw ", "make me ", "make ",
)
# Longest prefix wins
IMAGE_PROMPT_PREFIXES = tuple(sorted(_IMAGE_PREFIXES, key=len, reverse=True))


def extract_image_prompt(text: str) -> str:
    """Strip the leading request phrasing, leaving the prompt itself."""
    prompt = text.strip()
    lower = prompt.lower()
    for prefix in IMAGE_PROMPT_PREFIXES:
        if lower.startswith(prefix):
            prompt = prompt[len(prefix):]
            break
    return _strip_trailing(prompt)


# ==================== SEARCH / WEATHER ====================

SEARCH_PATTERN = re.compile(r"\b(search|google|look up|find|what is|who is|how to)\b")
SEARCH_QUERIES = (
    re.compile(r"search\s+(?:for\s+)?(.+)"),
    re.compile(r"google\s+(.+)"),
    re.compile(r"look up\s+(.+)"),
    re.compile(r"find\s+(.+)"),
    re.compile(r"what is\s+(.+)"),
    re.compile(r"who is\s+(.+)"),
)
WEATHER_PATTERN = re.compile(r"\b(weather|temperature|forecast|rain|sunny|cold|hot)\b")
LOCATION_PATTERN = re.compile(
    r"\b(?:weather|temperature|forecast|rain|sunny|cold|hot)\b.*\b(?:in|for|at)\s+(.+)$"
)


def extract_search_query(text: str) -> str:
    for pattern in SEARCH_QUERIES:
        match = pattern.search(text)
        if match:
            return _strip_trailing(match.group(1))
    return _strip_trailing(text)


def _has_search_object(data: RuleInput) -> bool:
    leftover = SEARCH_PATTERN.sub(" ", data.text)
    leftover = re.sub(r"\bfor\b", " ", leftover)
    return bool(leftover.strip(" ?.!"))


def extract_location(text: str) -> str:
    match = LOCATION_PATTERN.search(text)
    return _strip_trailing(match.group(1)) if match else ""


# ==================== FILES / SCREEN / SECURITY ====================

ORGANIZE_PATTERN = re.compile(r"\b(organize|sort|clean|tidy)\b.*\b(files?|folders?|desktop|downloads?)\b")
TIDY_PATTERN = re.compile(r"\b(put.*into|organize|sort|clean|tidy|arrange)\b")
SCREENSHOT_PATTERN = re.compile(r"\b(screenshot|capture|screen)\b")
SCAN_PATTERN = re.compile(
    r"\b(scan|check|analyze)\b.*\b(system|computer|pc|virus|malware|spyware|files|security)\b"
    r"|\b(virus|malware|spyware|security)\b.*\b(scan|check)\b"
)


def _wants_organize(data: RuleInput) -> bool:
    if ORGANIZE_PATTERN.search(data.text):
        return True
    return data.utterance.has_attachments and bool(TIDY_PATTERN.search(data.text))


def _organize_entities(data: RuleInput) -> dict[str, str]:
    default = "attachments" if data.utterance.has_attachments else "desktop"
    return {"target": extract_folder_target(data.text, default=default)}


def _scan_entities(data: RuleInput) -> dict[str, str]:
    return {"scan_type": "deep" if _has(r"\b(deep|full)\b", data.text) else "quick"}


DEFAULT_RULES: tuple[IntentRule, ...] = (
    IntentRule(
        name="image_question",
        intent="analyze_image",
        confidence=0.95,
        condition=_asks_about_image,
        extract=_image_entities,
    ),
    IntentRule(
        name="play_music",
        intent="play_music",
        confidence=0.85,
        pattern=PLAY_PATTERN,
        condition=lambda d: bool(PLAY_OBJECT_PATTERN.search(d.text)),
        extract=_music_entities,
    ),
    IntentRule(
        name="media_control",
        intent="media_control",
        confidence=0.9,
        pattern=MEDIA_PATTERN,
        extract=lambda d: {"action": extract_media_action(d.text)},
    ),
    IntentRule(
        name="volume_control",
        intent="volume_control",
        confidence=0.9,
        pattern=VOLUME_PATTERN,
        extract=lambda d: {"action": extract_volume_action(d.text)},
    ),
    # Must stay ahead of open_folder so "open appdata" is not a user folder
    IntentRule(
        name="open_system_folder",
        intent="open_system_folder",
        confidence=0.95,
        pattern=SYSTEM_FOLDER_PATTERN,
        condition=lambda d: bool(SYSTEM_FOLDER_VERB.search(d.text)),
        extract=_system_folder_entities,
    ),
    IntentRule(
        name="open_folder",
        intent="open_folder",
        confidence=0.95,
        pattern=FOLDER_PATTERN,
        extract=_folder_entities,
    ),
    IntentRule(
        name="app_control",
        intent="open_app",
        confidence=0.85,
        pattern=APP_PATTERN,
        extract=lambda d: {"app": extract_app_name(d.text)},
        choose_intent=_app_intent,
    ),
    IntentRule(
        name="power_control",
        intent="power_control",
        confidence=0.9,
        pattern=POWER_PATTERN,
        extract=lambda d: {"action": extract_power_action(d.text)},
    ),
    # Ahead of web_search so "create an image of ..." is not a lookup
    IntentRule(
        name="generate_image",
        intent="generate_image",
        confidence=0.95,
        pattern=IMAGE_GEN_PATTERN,
        extract=lambda d: {"prompt": extract_image_prompt(d.text)},
    ),
    IntentRule(
        name="web_search",
        intent="web_search",
        confidence=0.8,
        pattern=SEARCH_PATTERN,
        condition=_has_search_object,
        extract=lambda d: {"query": extract_search_query(d.text)},
    ),
    IntentRule(
        name="weather",
        intent="weather",
        confidence=0.85,
        pattern=WEATHER_PATTERN,
        extract=lambda d: {"location": extract_location(d.text)},
    ),
    IntentRule(
        name="organize_files",
        intent="organize_files",
        confidence=0.85,
        condition=_wants_organize,
        extract=_organize_entities,
    ),
    IntentRule(
        name="screenshot",
        intent="screenshot",
        confidence=0.9,
        pattern=SCREENSHOT_PATTERN,
    ),
    IntentRule(
        name="system_scan",
        intent="system_scan",
        confidence=0.95,
        pattern=SCAN_PATTERN,
        extract=_scan_entities,
    ),
)
