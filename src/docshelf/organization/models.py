"""Filesystem operation models recorded while relocating documents."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel


class MoveOperation(BaseModel):
    """Represents moving a file to a new directory, keeping its name.

    Attributes:
        source: File path before the move.
        destination: File path after the move.
        reasoning: Optional explanation for the move.
    """

    kind: Literal["move"] = "move"
    source: Path
    destination: Path
    reasoning: Optional[str] = None


class RenameOperation(BaseModel):
    """Represents renaming a file inside its directory.

    Attributes:
        source: File path before the rename.
        destination: File path after the rename.
        reasoning: Optional explanation for the rename.
        conflict_applied: Whether a numeric suffix was added to avoid a collision.
    """

    kind: Literal["rename"] = "rename"
    source: Path
    destination: Path
    reasoning: Optional[str] = None
    conflict_applied: bool = False


FileOperation = Union[MoveOperation, RenameOperation]

__all__ = ["MoveOperation", "RenameOperation", "FileOperation"]
