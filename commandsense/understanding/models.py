"""Data models for the understanding pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import PurePath
from typing import Any, Optional


IMAGE_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".tiff", ".ico",
})


def is_image_path(path: str) -> bool:
    """Check if a file path or URI points at an image by extension."""
    if not path:
        return False
    # URIs may carry a query string after the file name
    name = path.split("?", 1)[0].split("#", 1)[0]
    return PurePath(name).suffix.lower() in IMAGE_EXTENSIONS


@dataclass(frozen=True)
class Utterance:
    """Raw user input plus any attached file references."""

    text: str
    attachments: tuple[str, ...] = ()

    @property
    def image_attachments(self) -> list[str]:
        return [p for p in self.attachments if is_image_path(p)]

    @property
    def has_images(self) -> bool:
        return any(is_image_path(p) for p in self.attachments)

    @property
    def has_attachments(self) -> bool:
        return len(self.attachments) > 0


@dataclass
class ContextEntry:
    """A prior dispatched action, used to resolve "it" and "again"."""

    action: str
    main_entity: str
    result: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "action": self.action,
            "main_entity": self.main_entity,
            "result": self.result,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContextEntry":
        """Create from dictionary."""
        timestamp = data.get("timestamp")
        return cls(
            action=data["action"],
            main_entity=data["main_entity"],
            result=data.get("result"),
            timestamp=datetime.fromisoformat(timestamp) if timestamp else datetime.now(),
        )


@dataclass
class UnderstandingResult:
    """The structured interpretation of one utterance."""

    normalized_input: str
    intent: str
    confidence: float
    entities: dict[str, str] = field(default_factory=dict)
    needs_clarification: bool = False
    clarification: Optional[str] = None
    suggested_action: Optional[str] = None
    source: str = "local"  # "local", "remote" or "fallback"

    def __post_init__(self) -> None:
        self.confidence = max(0.0, min(1.0, float(self.confidence)))
        if self.needs_clarification and not self.clarification:
            raise ValueError("needs_clarification requires a clarification question")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "normalized_input": self.normalized_input,
            "intent": self.intent,
            "confidence": self.confidence,
            "entities": dict(self.entities),
            "needs_clarification": self.needs_clarification,
            "clarification": self.clarification,
            "suggested_action": self.suggested_action,
            "source": self.source,
        }


class StoreStatus(str, Enum):
    """Outcome of loading or saving a persisted store."""
    OK = "ok"
    MISSING = "missing"
    CORRUPT = "corrupt"
    IO_ERROR = "io_error"


@dataclass
class StoreResult:
    """Status of a persistence operation; never raised, always returned."""

    status: StoreStatus
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == StoreStatus.OK


class RemoteStatus(str, Enum):
    """Outcome of a remote classification attempt."""
    OK = "ok"
    UNCONFIGURED = "unconfigured"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    MALFORMED = "malformed"


@dataclass
class RemoteOutcome:
    """Result of the remote classifier race."""

    status: RemoteStatus
    result: Optional[UnderstandingResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == RemoteStatus.OK and self.result is not None
