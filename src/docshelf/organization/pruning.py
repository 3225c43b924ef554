"""Removal of empty hierarchy directories."""

from __future__ import annotations

import logging
from pathlib import Path

LOGGER = logging.getLogger(__name__)


def prune_empty_directories(start: Path, root: Path) -> list[Path]:
    """Remove ``start`` and its ancestors while they are empty.

    Pruning stops at the first non-empty directory and never removes or walks
    above ``root``. Directories outside ``root`` are left untouched.

    Args:
        start: Directory that may have become empty.
        root: Storage root bounding the walk.

    Returns:
        list[Path]: Directories removed, deepest first.
    """
    root = root.resolve()
    current = start.resolve()
    if current == root or root not in current.parents:
        return []

    removed: list[Path] = []
    while current != root:
        try:
            current.rmdir()
        except FileNotFoundError:
            pass
        except OSError:
            # Not empty (or not removable): everything above is non-empty too.
            break
        else:
            removed.append(current)
            LOGGER.debug("Pruned empty directory %s", current)
        current = current.parent
    return removed


__all__ = ["prune_empty_directories"]
