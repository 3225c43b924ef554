"""State management errors."""

from docshelf.errors import DocumentNotFoundError, StorageError


class StateError(StorageError):
    """Base exception for metadata store operations."""

    code = "state_error"


class MissingStateError(StateError):
    """Raised when no state file exists for an archive root."""

    code = "missing_state"


class UnknownDocumentError(StateError, DocumentNotFoundError):
    """Raised when saving or deleting a record the store does not hold."""

    code = "not_found"
