"""Centralized logging configuration for commandsense."""

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from loguru import logger

if TYPE_CHECKING:
    from commandsense.config.schema import Config


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(
    level: str = "WARNING",
    log_file: Optional[Path] = None,
    verbose: bool = False,
    rotation: str = "10 MB",
    retention: str = "1 week",
) -> None:
    """
    Replace loguru's default sink with a console sink and a rotating file sink.

    Library code only ever calls ``logger``; a host calls this once at startup.
    The file sink always records DEBUG, so every pipeline stage's rewrite
    ("[Normalizer] 'paly' -> 'play'") can be traced after the fact.

    Args:
        level: Minimum console level
        log_file: Log file path, ~/.commandsense/commandsense.log by default
        verbose: Force the console to DEBUG
        rotation: Size or age at which the file rotates
        retention: How long rotated files are kept
    """
    logger.remove()

    log_file = log_file or Path.home() / ".commandsense" / "commandsense.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    console_level = "DEBUG" if verbose else level
    logger.add(sys.stderr, level=console_level, format=CONSOLE_FORMAT, backtrace=True, diagnose=False)
    logger.add(
        str(log_file),
        level="DEBUG",
        format=FILE_FORMAT,
        rotation=rotation,
        retention=retention,
        compression="zip",
        enqueue=True,
    )

    logger.debug(f"Logging initialized. Console level: {console_level}, File: {log_file}")


def configure_logging_from(config: "Config") -> None:
    """Apply the ``logging`` section of a loaded config."""
    configure_logging(
        level=config.logging.level,
        log_file=config.log_path,
        verbose=config.logging.verbose,
        rotation=config.logging.rotation,
        retention=config.logging.retention,
    )
