"""Metadata store for archived documents."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Protocol

from pydantic import ValidationError

from .errors import MissingStateError, StateError, UnknownDocumentError
from .models import MONTHS, ArchiveState, DocumentMetadata, DocumentRecord, Month, Tag

DEFAULT_STATE_DIRNAME = ".docshelf"
STATE_FILENAME = "state.json"

LOGGER = logging.getLogger(__name__)

RecordPredicate = Callable[[DocumentRecord], bool]


class DocumentStore(Protocol):
    """Persistence interface the ingestion and relocation core relies on."""

    def create(self, record: DocumentRecord) -> DocumentRecord: ...

    def find_by_id(self, document_id: str) -> Optional[DocumentRecord]: ...

    def find(
        self,
        predicate: Optional[RecordPredicate] = None,
        *,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list[DocumentRecord]: ...

    def save(self, record: DocumentRecord) -> DocumentRecord: ...

    def delete(self, document_id: str) -> None: ...


class JsonDocumentStore:
    """Keep document records in a JSON file beneath the storage root."""

    def __init__(self, root: Path, base_dirname: str = DEFAULT_STATE_DIRNAME) -> None:
        """Initialize the store for an archive root.

        Args:
            root: Storage root of the archive.
            base_dirname: Name of the directory that stores state artifacts.
        """
        self._root = root
        self._base_dirname = base_dirname

    @property
    def state_path(self) -> Path:
        """Return the path of the JSON state file."""
        return self._root / self._base_dirname / STATE_FILENAME

    def load(self) -> ArchiveState:
        """Load the archive state.

        Returns:
            ArchiveState: Deserialized state for the archive.

        Raises:
            MissingStateError: If no state file is present.
            StateError: If stored data cannot be parsed.
        """
        if not self.state_path.exists():
            raise MissingStateError(f"No archive state found at {self.state_path}")

        try:
            data = json.loads(self.state_path.read_text(encoding="utf-8"))
            return ArchiveState.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise StateError(f"Invalid archive state data: {exc}") from exc

    def create(self, record: DocumentRecord) -> DocumentRecord:
        """Insert a new record.

        Raises:
            StateError: If the identifier is taken or the record is invalid.
        """
        state = self._load_or_initialize()
        if record.id in state.documents:
            raise StateError(f"Document {record.id} already exists.")
        now = datetime.now(timezone.utc)
        stored = self._validated(record, created_at=now, updated_at=now)
        state.documents[stored.id] = stored
        self._write(state)
        LOGGER.debug("Created document %s at %s", stored.id, stored.storage_path)
        return stored

    def find_by_id(self, document_id: str) -> Optional[DocumentRecord]:
        """Return the record with ``document_id`` or ``None``."""
        return self._load_or_initialize().documents.get(document_id)

    def find(
        self,
        predicate: Optional[RecordPredicate] = None,
        *,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list[DocumentRecord]:
        """Return matching records, newest first.

        Args:
            predicate: Optional filter applied to each record.
            skip: Number of matches to skip.
            limit: Maximum number of records to return.
        """
        records = [
            record
            for record in self._load_or_initialize().documents.values()
            if predicate is None or predicate(record)
        ]
        records.sort(key=lambda record: record.created_at, reverse=True)
        end = None if limit is None else skip + limit
        return records[skip:end]

    def save(self, record: DocumentRecord) -> DocumentRecord:
        """Replace an existing record, stamping ``updated_at``.

        Raises:
            UnknownDocumentError: If the record does not exist.
            StateError: If the record fails validation.
        """
        state = self._load_or_initialize()
        existing = state.documents.get(record.id)
        if existing is None:
            raise UnknownDocumentError(f"Document {record.id} does not exist.")
        stored = self._validated(
            record,
            created_at=existing.created_at,
            updated_at=datetime.now(timezone.utc),
        )
        state.documents[stored.id] = stored
        self._write(state)
        return stored

    def delete(self, document_id: str) -> None:
        """Remove a record.

        Raises:
            UnknownDocumentError: If the record does not exist.
        """
        state = self._load_or_initialize()
        if state.documents.pop(document_id, None) is None:
            raise UnknownDocumentError(f"Document {document_id} does not exist.")
        self._write(state)

    def _validated(
        self, record: DocumentRecord, *, created_at: datetime, updated_at: datetime
    ) -> DocumentRecord:
        payload = record.model_dump(mode="python")
        payload.update(created_at=created_at, updated_at=updated_at)
        try:
            return DocumentRecord.model_validate(payload)
        except ValidationError as exc:
            raise StateError(f"Invalid document record {record.id}: {exc}") from exc

    def _load_or_initialize(self) -> ArchiveState:
        try:
            return self.load()
        except MissingStateError:
            return ArchiveState(root=str(self._root))

    def _write(self, state: ArchiveState) -> None:
        directory = self.state_path.parent
        directory.mkdir(parents=True, exist_ok=True)
        state.updated_at = datetime.now(timezone.utc)
        payload = json.dumps(state.model_dump(mode="json"), indent=2)
        scratch = directory / f".{STATE_FILENAME}.tmp"
        scratch.write_text(payload, encoding="utf-8")
        scratch.replace(self.state_path)


__all__ = [
    "DocumentStore",
    "JsonDocumentStore",
    "RecordPredicate",
    "DEFAULT_STATE_DIRNAME",
    "ArchiveState",
    "DocumentMetadata",
    "DocumentRecord",
    "Month",
    "MONTHS",
    "Tag",
    "StateError",
    "MissingStateError",
    "UnknownDocumentError",
]
