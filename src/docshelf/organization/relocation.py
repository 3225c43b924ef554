"""Two-phase relocation of stored documents after metadata edits.

A relocation first moves the backing file into its new hierarchy directory
and renames it, then waits for the caller to persist the updated record.
The returned :class:`PendingRelocation` either commits (the record was saved)
or rolls the file back to where it was (the save failed)::

    with manager.relocate(document, 2024, "Acme", "March") as pending:
        store.save(document.model_copy(update={"storage_path": pending.storage_path, ...}))
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, PrivateAttr

from docshelf.errors import PlacementFailedError, RelocationFailedError
from docshelf.state.models import DocumentRecord

from .models import FileOperation, MoveOperation, RenameOperation
from .naming import relocated_filename
from .placer import HierarchyPlacer
from .pruning import prune_empty_directories

LOGGER = logging.getLogger(__name__)

RelocationStatus = Literal["pending", "committed", "rolled_back"]


def needs_relocation(
    document: DocumentRecord, year: int, merchant_name: str, month: str
) -> bool:
    """Return whether new hierarchy metadata differs from the document's."""
    return (
        year != document.year
        or merchant_name != document.merchant_name
        or month != document.month
    )


class PendingRelocation(BaseModel):
    """A tentative file relocation awaiting commit or rollback.

    Attributes:
        document_id: Identifier of the relocated document.
        root: Storage root used to prune emptied directories.
        original_path: Absolute path before the relocation.
        final_path: Absolute path after the relocation.
        storage_path: ``final_path`` relative to the storage root.
        operations: Filesystem operations applied, in order.
        status: Lifecycle state of the relocation.
    """

    document_id: str
    root: Path
    original_path: Path
    final_path: Path
    storage_path: str
    operations: List[FileOperation] = Field(default_factory=list)
    status: RelocationStatus = "pending"
    _restore_error: Optional[OSError] = PrivateAttr(default=None)

    @property
    def stored_name(self) -> str:
        """Return the filename the document has after the relocation."""
        return self.final_path.name

    @property
    def restore_error(self) -> Optional[OSError]:
        """Return the error raised while restoring the file, if any."""
        return self._restore_error

    def commit(self) -> None:
        """Accept the relocation and prune directories it emptied."""
        if self.status != "pending":
            raise RuntimeError(f"Cannot commit a relocation that is {self.status}.")
        self.status = "committed"
        prune_empty_directories(self.original_path.parent, self.root)

    def rollback(self) -> bool:
        """Move the file back to its original path.

        A failed restoration is logged and recorded on :attr:`restore_error`;
        it is never raised, so it cannot hide the error that caused the rollback.

        Returns:
            bool: True when the file is back at ``original_path``.
        """
        if self.status == "rolled_back":
            return self._restore_error is None
        if self.status != "pending":
            raise RuntimeError(f"Cannot roll back a relocation that is {self.status}.")
        self.status = "rolled_back"

        try:
            _unwind(self.operations)
        except OSError as exc:
            self._restore_error = exc
            LOGGER.error(
                "Failed to restore document %s from %s to %s: %s",
                self.document_id,
                self.final_path,
                self.original_path,
                exc,
            )
            return False

        prune_empty_directories(self.final_path.parent, self.root)
        LOGGER.info("Rolled back relocation of document %s", self.document_id)
        return True

    def __enter__(self) -> "PendingRelocation":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> Literal[False]:
        if self.status == "pending":
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        return False


class RelocationManager:
    """Relocate document files when their year, merchant, or month changes."""

    def __init__(self, placer: HierarchyPlacer) -> None:
        self._placer = placer

    def relocate(
        self,
        document: DocumentRecord,
        year: int,
        merchant_name: str,
        month: str,
    ) -> PendingRelocation:
        """Move and rename a document's file for new hierarchy metadata.

        The file keeps its ingestion-timestamp prefix and is renamed to
        ``<prefix>-<merchant>-<month>-<year><ext>``, with a numeric suffix
        when another file already holds that name.

        Args:
            document: Record describing the file's current location.
            year: Target year.
            merchant_name: Target merchant.
            month: Target month.

        Returns:
            PendingRelocation: Tentative relocation to commit or roll back.

        Raises:
            InvalidYearError: If ``year`` contains no digits.
            RelocationFailedError: If the move or rename fails; any partial
                move has been undone.
        """
        try:
            original = self._placer.resolve(document.storage_path)
        except PlacementFailedError as exc:
            raise RelocationFailedError(str(exc)) from exc

        target_directory = self._placer.target_directory(year, merchant_name, month)
        operations: list[FileOperation] = []
        try:
            moved = self._placer.place(original, year, merchant_name, month)
        except PlacementFailedError as exc:
            prune_empty_directories(target_directory, self._placer.root)
            raise RelocationFailedError(
                f"Could not relocate document {document.id}: {exc}"
            ) from exc
        if moved != original:
            operations.append(
                MoveOperation(
                    source=original,
                    destination=moved,
                    reasoning=f"Move to {self._placer.relative_path(target_directory)}",
                )
            )

        final = moved
        desired = moved.with_name(
            relocated_filename(document.stored_name, year, merchant_name, month)
        )
        if desired != moved:
            candidate = self._placer.available_path(desired)
            try:
                self._rename(moved, candidate)
            except OSError as exc:
                self._abort(document, operations, target_directory)
                raise RelocationFailedError(
                    f"Could not rename {moved.name} to {candidate.name}: {exc}"
                ) from exc
            operations.append(
                RenameOperation(
                    source=moved,
                    destination=candidate,
                    reasoning="Reflect new merchant, month and year in the filename",
                    conflict_applied=candidate != desired,
                )
            )
            final = candidate

        LOGGER.info("Relocated document %s from %s to %s", document.id, original, final)
        return PendingRelocation(
            document_id=document.id,
            root=self._placer.root,
            original_path=original,
            final_path=final,
            storage_path=self._placer.relative_path(final),
            operations=operations,
        )

    def _rename(self, source: Path, destination: Path) -> None:
        source.rename(destination)

    def _abort(
        self,
        document: DocumentRecord,
        operations: list[FileOperation],
        target_directory: Path,
    ) -> None:
        try:
            _unwind(operations)
        except OSError as exc:
            LOGGER.error("Failed to unwind partial relocation of document %s: %s", document.id, exc)
            return
        prune_empty_directories(target_directory, self._placer.root)


def _unwind(operations: list[FileOperation]) -> None:
    for operation in reversed(operations):
        if operation.destination.exists():
            operation.source.parent.mkdir(parents=True, exist_ok=True)
            operation.destination.rename(operation.source)


__all__ = ["PendingRelocation", "RelocationManager", "needs_relocation"]
