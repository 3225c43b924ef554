"""Logging configuration for the docshelf CLI."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from docshelf.config.models import LoggingSettings

_HANDLER_MARK = "_docshelf_handler"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(
    settings: LoggingSettings,
    log_path: Optional[Path] = None,
    *,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Attach console and rotating-file handlers to the ``docshelf`` logger.

    Calling this again replaces the handlers installed by a previous call.

    Args:
        settings: Level and rotation settings.
        log_path: Optional log file; rotated at ``settings.max_size_mb``.
        console: Console used by the rich handler (stderr by default).

    Returns:
        logging.Logger: The configured package logger.
    """
    logger = logging.getLogger("docshelf")
    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    file_level = min(level, logging.INFO)
    logger.setLevel(file_level if log_path is not None else level)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)
            handler.close()

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    rich_handler.setLevel(level)
    setattr(rich_handler, _HANDLER_MARK, True)
    logger.addHandler(rich_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        setattr(file_handler, _HANDLER_MARK, True)
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging"]
