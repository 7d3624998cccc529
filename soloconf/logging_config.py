"""Logging configuration for the soloconf CLI."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str | int = "INFO", log_file: Path | None = None) -> None:
    """Configure the ``soloconf`` logger.

    Console output goes to stderr through rich so command output on stdout
    stays clean.  Calling this again replaces the handlers it installed before.

    Parameters
    ----------
    level:
        Level name or number, e.g. ``"DEBUG"``.
    log_file:
        Optional file that receives the same records in plain text.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("soloconf")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if getattr(handler, "_soloconf", False):
            logger.removeHandler(handler)
            handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True), show_path=False, rich_tracebacks=False
    )
    console_handler.setLevel(level)
    console_handler._soloconf = True  # type: ignore[attr-defined]
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        file_handler._soloconf = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)
        logger.debug("Logging to file: %s", log_path)

