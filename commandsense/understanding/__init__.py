"""Natural-language command understanding.

Typo correction, slang rewriting, context resolution and an ordered rule
cascade, with a timed remote LLM fallback for low-confidence input.
"""

from commandsense.understanding.clarification import ClarificationGenerator
from commandsense.understanding.classifier import DeterministicClassifier
from commandsense.understanding.context import ContextResolver
from commandsense.understanding.models import (
    ContextEntry,
    RemoteOutcome,
    RemoteStatus,
    StoreResult,
    StoreStatus,
    UnderstandingResult,
    Utterance,
)
from commandsense.understanding.normalizer import LexicalNormalizer
from commandsense.understanding.pipeline import UnderstandingContext, UnderstandingPipeline
from commandsense.understanding.remote import RemoteClassifier
from commandsense.understanding.rules import DEFAULT_RULES, IntentRule
from commandsense.understanding.slang import SlangRewriter
from commandsense.understanding.store import ContextHistory, PreferenceStore

__all__ = [
    "ClarificationGenerator",
    "ContextEntry",
    "ContextHistory",
    "ContextResolver",
    "DEFAULT_RULES",
    "DeterministicClassifier",
    "IntentRule",
    "LexicalNormalizer",
    "PreferenceStore",
    "RemoteClassifier",
    "RemoteOutcome",
    "RemoteStatus",
    "SlangRewriter",
    "StoreResult",
    "StoreStatus",
    "UnderstandingContext",
    "UnderstandingPipeline",
    "UnderstandingResult",
    "Utterance",
]
