"""Best-effort removal of temporary and orphaned upload files.

Cleanup runs while another error is usually being reported. It therefore
logs and swallows its own failures; callers rely on it never raising.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

LOGGER = logging.getLogger(__name__)


def discard_files(paths: Iterable[Path], *, reason: str) -> list[Path]:
    """Delete each path, logging failures instead of raising them.

    Args:
        paths: Files to delete. Missing files count as deleted.
        reason: Short description included in log messages.

    Returns:
        list[Path]: Paths that could not be deleted.
    """
    failed: list[Path] = []
    for path in dict.fromkeys(paths):
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            failed.append(path)
            LOGGER.warning("Could not remove %s during %s: %s", path, reason, exc)
        else:
            LOGGER.debug("Removed %s during %s", path, reason)
    return failed


__all__ = ["discard_files"]
