"""Configuration loading utilities."""

import json
import os
import stat
from pathlib import Path

from loguru import logger

from commandsense.config.schema import Config

# Optional per-user key file in the data dir, e.g. {"openai": "sk-..."}
KEYS_FILE = "ai_keys.json"
KEYS_FILE_PROVIDER = "openai"


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".commandsense" / "config.json"


def _secure_permissions(path: Path) -> None:
    try:
        current_mode = stat.S_IMODE(os.stat(path).st_mode)
        if current_mode != 0o600:
            logger.warning(
                f"{path.name} has insecure permissions: {oct(current_mode)}. "
                f"Fixing to 0o600 (owner read/write only)..."
            )
            os.chmod(path, 0o600)
    except OSError as e:
        logger.warning(f"Could not verify permissions of {path}: {e}")


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file, or defaults if missing or invalid.

    A provider key left empty in the config is looked up in the data
    directory's ``ai_keys.json``.

    Args:
        config_path: Optional path to config file. Uses default if not provided.
    """
    path = config_path or get_config_path()
    config = None

    if path.exists():
        _secure_permissions(path)
        try:
            with open(path) as f:
                data = json.load(f)
            config = Config.model_validate(data)
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}. Using default configuration.")

    return _resolve_keys_file(config or Config())


def _resolve_keys_file(config: Config) -> Config:
    """Fill an empty provider key from ``ai_keys.json`` if present."""
    if config.provider.api_key:
        return config

    keys_path = config.data_path / KEYS_FILE
    if not keys_path.exists():
        return config

    _secure_permissions(keys_path)
    try:
        keys = json.loads(keys_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Could not read {keys_path}: {e}")
        return config

    key = keys.get(KEYS_FILE_PROVIDER) if isinstance(keys, dict) else None
    if isinstance(key, str) and key:
        config.provider.api_key = key
        logger.debug(f"Resolved {KEYS_FILE_PROVIDER} key from {keys_path}")
    return config


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    Save configuration to file with secure permissions.

    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(config.model_dump(by_alias=True), f, indent=2)

    # The file may carry an API key
    os.chmod(path, 0o600)
    logger.debug(f"Saved config to {path}")
