"""Filesystem helpers."""

from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """Create a directory (and parents) if missing and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path(data_dir: str | Path | None = None) -> Path:
    """Get the commandsense data directory, ~/.commandsense by default."""
    if data_dir:
        return Path(data_dir).expanduser()
    return Path.home() / ".commandsense"
