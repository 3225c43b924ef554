"""Ingestion orchestration: normalize, place, and record an upload batch."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

from pydantic import ValidationError

from docshelf.errors import InvalidInputError, NoFilesProvidedError, PersistenceFailedError
from docshelf.organization.placer import HierarchyPlacer
from docshelf.organization.pruning import prune_empty_directories
from docshelf.state import DocumentStore
from docshelf.state.models import DocumentMetadata, DocumentRecord, Tag

from .cleanup import discard_files
from .models import UploadedFile
from .normalizer import UploadNormalizer

LOGGER = logging.getLogger(__name__)


class IngestionPipeline:
    """Turn an uploaded batch plus shared metadata into document records."""

    def __init__(
        self,
        normalizer: UploadNormalizer,
        placer: HierarchyPlacer,
        store: DocumentStore,
    ) -> None:
        self.normalizer = normalizer
        self.placer = placer
        self.store = store

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
        """Store every file of an upload and create one record per stored file.

        Images are merged into a single PDF first. The metadata applies to
        every resulting file. On failure, files that do not yet back a
        created record are deleted; records created earlier in the batch
        are kept.

        Args:
            files: Uploaded blobs in upload order.
            year: Archive year.
            merchant_name: Merchant name.
            month: Month name.
            tags: Priced line items.
            notes: Optional notes.

        Returns:
            list[DocumentRecord]: Created records in file order.

        Raises:
            NoFilesProvidedError: If ``files`` is empty.
            InvalidInputError: If the metadata is invalid (nothing is touched
                beyond deleting the uploaded files).
            UnsupportedMixedBatchError: If images are mixed with other types.
            MergeFailedError: If images cannot be merged.
            PlacementFailedError: If a file cannot be moved into the hierarchy.
            PersistenceFailedError: If the store rejects a record.
        """
        if not files:
            raise NoFilesProvidedError("At least one document file is required.")

        # Paths that do not back a created record yet; deleted on failure.
        orphans: list[Path] = [upload.path for upload in files]
        records: list[DocumentRecord] = []
        target: Optional[Path] = None
        try:
            metadata = self._metadata(year, merchant_name, month, tags, notes)
            normalized = self.normalizer.normalize(
                files, f"{metadata.merchant_name}-{metadata.month}-{metadata.year}"
            )
            orphans.extend(generated.path for generated in normalized.generated)

            target = self.placer.target_directory(
                metadata.year, metadata.merchant_name, metadata.month
            )
            for upload in normalized.files:
                destination = self.placer.place(
                    upload.path,
                    metadata.year,
                    metadata.merchant_name,
                    metadata.month,
                    resolve_conflicts=True,
                )
                orphans = [destination if path == upload.path else path for path in orphans]
                records.append(self._create(upload, destination, metadata))
                orphans.remove(destination)
        except Exception:
            discard_files(orphans, reason="failed ingestion")
            if target is not None:
                prune_empty_directories(target, self.placer.root)
            raise

        LOGGER.info(
            "Ingested %d document(s) for %s %s %s",
            len(records),
            metadata.merchant_name,
            metadata.month,
            metadata.year,
        )
        return records

    def _metadata(
        self,
        year: int,
        merchant_name: str,
        month: str,
        tags: Iterable[Tag | dict],
        notes: Optional[str],
    ) -> DocumentMetadata:
        try:
            return DocumentMetadata(
                year=year,
                merchant_name=merchant_name,
                month=month,
                tags=list(tags),
                notes=notes,
            )
        except ValidationError as exc:
            raise InvalidInputError(f"Invalid document metadata: {exc}") from exc

    def _create(
        self, upload: UploadedFile, destination: Path, metadata: DocumentMetadata
    ) -> DocumentRecord:
        record = DocumentRecord(
            original_name=upload.original_name,
            stored_name=destination.name,
            storage_path=self.placer.relative_path(destination),
            mime_type=upload.mime_type,
            size=upload.size,
            **metadata.model_dump(),
        )
        try:
            return self.store.create(record)
        except Exception as exc:
            raise PersistenceFailedError(
                f"Could not record {upload.original_name}: {exc}"
            ) from exc


__all__ = ["IngestionPipeline"]
