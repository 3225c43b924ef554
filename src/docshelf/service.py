"""Archive service wiring storage, ingestion, and relocation together."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from pydantic import ValidationError

from docshelf.config.models import DocshelfConfig, MergeSettings, UploadSettings
from docshelf.errors import (
    DocumentFileMissingError,
    DocumentNotFoundError,
    InvalidInputError,
    PersistenceFailedError,
)
from docshelf.ingestion import (
    ImagePdfMerger,
    IngestionPipeline,
    UploadedFile,
    UploadNormalizer,
    UploadStager,
    discard_files,
)
from docshelf.organization import (
    HierarchyPlacer,
    RelocationManager,
    needs_relocation,
    prune_empty_directories,
)
from docshelf.search import DocumentQuery, YearNode, build_hierarchy
from docshelf.state import DEFAULT_STATE_DIRNAME, DocumentStore, JsonDocumentStore
from docshelf.state.models import DocumentMetadata, DocumentRecord, Tag

LOGGER = logging.getLogger(__name__)

UNSET: Any = object()


class ArchiveService:
    """Public operations on an archive rooted at one storage directory."""

    def __init__(
        self,
        root: Path,
        *,
        store: Optional[DocumentStore] = None,
        uploads: Optional[UploadSettings] = None,
        merge: Optional[MergeSettings] = None,
        state_dirname: str = DEFAULT_STATE_DIRNAME,
        staging_dirname: str = "staging",
    ) -> None:
        """Initialize the service.

        Args:
            root: Storage root; created when missing.
            store: Metadata store; defaults to a JSON store under ``root``.
            uploads: Upload limits used when staging local files.
            merge: Fallback page geometry for merged PDFs.
            state_dirname: Directory under ``root`` for metadata and logs.
            staging_dirname: Directory under the state directory for uploads.
        """
        root = root.expanduser()
        root.mkdir(parents=True, exist_ok=True)
        self.placer = HierarchyPlacer(root)
        self.state_dir = self.placer.root / state_dirname
        self.staging_dir = self.state_dir / staging_dirname
        self.store: DocumentStore = store or JsonDocumentStore(self.placer.root, state_dirname)
        merge = merge or MergeSettings()
        self.stager = UploadStager(self.staging_dir, uploads)
        self.relocator = RelocationManager(self.placer)
        self.pipeline = IngestionPipeline(
            UploadNormalizer(
                ImagePdfMerger(
                    self.staging_dir,
                    default_page_size=(merge.page_width, merge.page_height),
                )
            ),
            self.placer,
            self.store,
        )

    @classmethod
    def from_config(
        cls, config: DocshelfConfig, *, store: Optional[DocumentStore] = None
    ) -> "ArchiveService":
        """Build a service from loaded configuration."""
        return cls(
            Path(config.storage.root),
            store=store,
            uploads=config.uploads,
            merge=config.merge,
            state_dirname=config.storage.state_dirname,
            staging_dirname=config.storage.staging_dirname,
        )

    @property
    def root(self) -> Path:
        """Return the resolved storage root."""
        return self.placer.root

    @property
    def log_path(self) -> Path:
        """Return the archive log file path."""
        return self.state_dir / "docshelf.log"

    def ingest(
        self,
        files: Sequence[UploadedFile],
        *,
        year: int,
        merchant_name: str,
        month: str,
        tags: Iterable[Tag | dict] = (),
        notes: Optional[str] = None,
    ) -> list[DocumentRecord]:
        """Create documents from already-staged upload blobs."""
        return self.pipeline.ingest(
            files, year=year, merchant_name=merchant_name, month=month, tags=tags, notes=notes
        )

    def ingest_paths(
        self,
        sources: Sequence[Path],
        *,
        year: int,
        merchant_name: str,
        month: str,
        tags: Iterable[Tag | dict] = (),
        notes: Optional[str] = None,
    ) -> list[DocumentRecord]:
        """Stage local files and create documents from them."""
        staged = self.stager.stage(sources)
        return self.ingest(
            staged, year=year, merchant_name=merchant_name, month=month, tags=tags, notes=notes
        )

    def get(self, document_id: str) -> DocumentRecord:
        """Return a document record.

        Raises:
            DocumentNotFoundError: If no record exists.
        """
        document = self.store.find_by_id(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found.")
        return document

    def file_path(self, document_id: str) -> Path:
        """Return the absolute path of a document's backing file.

        Raises:
            DocumentNotFoundError: If no record exists.
            DocumentFileMissingError: If the backing file is gone.
        """
        path = self.placer.resolve(self.get(document_id).storage_path)
        if not path.is_file():
            raise DocumentFileMissingError(f"Stored file not found for document {document_id}.")
        return path

    def export(self, document_id: str, destination: Path) -> Path:
        """Copy a document's file out of the archive.

        A directory destination receives the file under its original name.
        """
        source = self.file_path(document_id)
        target = destination
        if destination.is_dir():
            target = destination / self.get(document_id).original_name
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)
        return target

    def search(self, query: Optional[DocumentQuery] = None) -> list[DocumentRecord]:
        """Return documents matching ``query``, newest first."""
        query = query or DocumentQuery()
        return self.store.find(query.matches, skip=query.skip, limit=query.limit)

    def hierarchy(self) -> list[YearNode]:
        """Return every document grouped by year, merchant, and month."""
        return build_hierarchy(self.store.find())

    def update(
        self,
        document_id: str,
        *,
        notes: Optional[str] = UNSET,
        tags: Optional[Iterable[Tag | dict]] = None,
        year: Optional[int] = None,
        merchant_name: Optional[str] = None,
        month: Optional[str] = None,
    ) -> DocumentRecord:
        """Edit a document's metadata, relocating its file when needed.

        ``None`` leaves year, merchant, month, and tags unchanged; notes are
        replaced whenever passed. Tags are replaced wholesale. When year,
        merchant, or month changes, the file moves to its new hierarchy
        position; if the store then rejects the record, the file is moved
        back before the error propagates.

        Raises:
            DocumentNotFoundError: If no record exists.
            InvalidInputError: If the edited metadata is invalid.
            RelocationFailedError: If the file could not be relocated.
            PersistenceFailedError: If the store rejected the edit.
        """
        document = self.get(document_id)
        changes: dict[str, Any] = {}
        if notes is not UNSET:
            changes["notes"] = notes
        if tags is not None:
            changes["tags"] = list(tags)
        if year is not None:
            changes["year"] = year
        if merchant_name is not None:
            changes["merchant_name"] = merchant_name
        if month is not None:
            changes["month"] = month

        current = document.model_dump(include=set(DocumentMetadata.model_fields))
        try:
            edited = DocumentMetadata.model_validate({**current, **changes})
        except ValidationError as exc:
            raise InvalidInputError(f"Invalid document metadata: {exc}") from exc

        payload = {**document.model_dump(), **edited.model_dump()}
        if not needs_relocation(document, edited.year, edited.merchant_name, edited.month):
            return self._save(DocumentRecord.model_validate(payload))

        with self.relocator.relocate(
            document, edited.year, edited.merchant_name, edited.month
        ) as pending:
            payload.update(storage_path=pending.storage_path, stored_name=pending.stored_name)
            return self._save(DocumentRecord.model_validate(payload))

    def delete(self, document_id: str) -> DocumentRecord:
        """Delete a record, then its file, then any emptied directories.

        Returns:
            DocumentRecord: The deleted record.
        """
        document = self.get(document_id)
        path = self.placer.resolve(document.storage_path)
        try:
            self.store.delete(document_id)
        except DocumentNotFoundError:
            raise
        except Exception as exc:
            raise PersistenceFailedError(f"Could not delete document {document_id}: {exc}") from exc

        discard_files([path], reason="document delete")
        prune_empty_directories(path.parent, self.root)
        LOGGER.info("Deleted document %s (%s)", document_id, document.storage_path)
        return document

    def _save(self, record: DocumentRecord) -> DocumentRecord:
        try:
            return self.store.save(record)
        except DocumentNotFoundError:
            raise
        except Exception as exc:
            raise PersistenceFailedError(f"Could not save document {record.id}: {exc}") from exc


__all__ = ["ArchiveService", "UNSET"]
