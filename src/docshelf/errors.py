"""Error kinds surfaced by the ingestion and relocation core."""

from __future__ import annotations


class DocshelfError(Exception):
    """Base exception for archive operations.

    Attributes:
        code: Machine-readable identifier used by the CLI error payloads.
    """

    code = "docshelf_error"


class InvalidInputError(DocshelfError):
    """Raised when caller-supplied files or metadata cannot be accepted."""

    code = "invalid_input"


class NoFilesProvidedError(InvalidInputError):
    """Raised when an upload batch contains no files."""

    code = "no_files"


class UnsupportedMixedBatchError(InvalidInputError):
    """Raised when images and other document types share one upload."""

    code = "mixed_batch"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "Mixing image files with other document types in a single upload is not supported."
        )


class InvalidYearError(InvalidInputError):
    """Raised when a year does not reduce to any digits."""

    code = "invalid_year"


class DocumentNotFoundError(DocshelfError):
    """Raised when no record exists for a document identifier."""

    code = "not_found"


class DocumentFileMissingError(DocumentNotFoundError):
    """Raised when a record exists but its backing file is gone."""

    code = "file_missing"


class StorageError(DocshelfError):
    """Base class for failures of the file tree or the metadata store."""

    code = "storage_error"


class MergeFailedError(StorageError):
    """Raised when image-to-PDF generation fails; no partial output remains."""

    code = "merge_failed"


class PlacementFailedError(StorageError):
    """Raised when a directory cannot be created or a file cannot be moved."""

    code = "placement_failed"


class RelocationFailedError(StorageError):
    """Raised when a relocation fails; the file is back at its original path."""

    code = "relocation_failed"


class PersistenceFailedError(StorageError):
    """Raised when the metadata store rejects a write."""

    code = "persistence_failed"


class ScanFailedError(StorageError):
    """Raised when the device scan utility fails or is unavailable."""

    code = "scan_failed"


__all__ = [
    "DocshelfError",
    "InvalidInputError",
    "NoFilesProvidedError",
    "UnsupportedMixedBatchError",
    "InvalidYearError",
    "DocumentNotFoundError",
    "DocumentFileMissingError",
    "StorageError",
    "MergeFailedError",
    "PlacementFailedError",
    "RelocationFailedError",
    "PersistenceFailedError",
    "ScanFailedError",
]
