"""Hierarchy placement, relocation, and pruning of stored documents."""

from .models import FileOperation, MoveOperation, RenameOperation
from .placer import HierarchyPlacer
from .pruning import prune_empty_directories
from .relocation import PendingRelocation, RelocationManager, needs_relocation

__all__ = [
    "FileOperation",
    "MoveOperation",
    "RenameOperation",
    "HierarchyPlacer",
    "PendingRelocation",
    "RelocationManager",
    "needs_relocation",
    "prune_empty_directories",
]
