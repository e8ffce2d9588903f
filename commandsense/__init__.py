"""commandsense - natural-language command understanding for desktop assistants."""

__version__ = "0.1.0"

from commandsense.understanding import (
    UnderstandingContext,
    UnderstandingPipeline,
    UnderstandingResult,
)

__all__ = [
    "UnderstandingContext",
    "UnderstandingPipeline",
    "UnderstandingResult",
    "__version__",
]
