"""Placement of files into the year/merchant/month hierarchy."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path, PurePosixPath

from docshelf.errors import PlacementFailedError

from .naming import sanitize_directory_name, year_segment

LOGGER = logging.getLogger(__name__)


class HierarchyPlacer:
    """Move files into ``<root>/<year>/<merchant>/<month>/`` without renaming them."""

    def __init__(self, root: Path) -> None:
        self._root = root.expanduser().resolve()

    @property
    def root(self) -> Path:
        """Return the storage root."""
        return self._root

    def target_directory(self, year: object, merchant_name: str, month: str) -> Path:
        """Return the hierarchy directory for the given metadata.

        Raises:
            InvalidYearError: If ``year`` contains no digits.
        """
        return (
            self._root
            / year_segment(year)
            / sanitize_directory_name(merchant_name, "merchant")
            / sanitize_directory_name(month, "month")
        )

    def place(
        self,
        file_path: Path,
        year: object,
        merchant_name: str,
        month: str,
        *,
        resolve_conflicts: bool = False,
    ) -> Path:
        """Move ``file_path`` into its hierarchy directory.

        The filename is kept unless another file holds it and
        ``resolve_conflicts`` is set, in which case a numeric suffix is added.
        Placing a file that already sits at its destination is a no-op.

        Args:
            file_path: Current location of the file.
            year: Archive year.
            merchant_name: Merchant name.
            month: Month name.
            resolve_conflicts: Pick a free ``<stem>-N<ext>`` name instead of failing
                when the destination is taken.

        Returns:
            Path: Absolute destination path.

        Raises:
            InvalidYearError: If ``year`` contains no digits.
            PlacementFailedError: If the directory cannot be created, the source
                is missing, another file occupies the destination, or the move fails.
        """
        directory = self.target_directory(year, merchant_name, month)
        source = file_path.expanduser().resolve()
        destination = directory / source.name

        if destination == source:
            return destination
        if not source.is_file():
            raise PlacementFailedError(f"Source file is missing: {source}")

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PlacementFailedError(f"Could not create directory {directory}: {exc}") from exc

        if destination.exists() and resolve_conflicts:
            destination = self.available_path(destination)
        elif destination.exists():
            raise PlacementFailedError(f"Destination already exists: {destination}")

        try:
            shutil.move(str(source), str(destination))
        except OSError as exc:
            raise PlacementFailedError(f"Could not move {source} to {destination}: {exc}") from exc

        LOGGER.debug("Placed %s at %s", source, destination)
        return destination

    def available_path(self, candidate: Path) -> Path:
        """Return ``candidate`` or the first free ``<stem>-N<ext>`` sibling of it."""
        counter = 1
        resolved = candidate
        while resolved.exists():
            resolved = candidate.with_name(f"{candidate.stem}-{counter}{candidate.suffix}")
            counter += 1
        return resolved

    def relative_path(self, path: Path) -> str:
        """Return ``path`` relative to the storage root in POSIX form."""
        relative = path.expanduser().resolve().relative_to(self._root)
        return PurePosixPath(*relative.parts).as_posix()

    def resolve(self, storage_path: str) -> Path:
        """Return the absolute path for a stored relative path.

        Raises:
            PlacementFailedError: If the path escapes the storage root.
        """
        candidate = (self._root / PurePosixPath(storage_path)).resolve()
        if self._root not in candidate.parents:
            raise PlacementFailedError(f"Storage path {storage_path!r} escapes the storage root.")
        return candidate


__all__ = ["HierarchyPlacer"]
