"""Archive service tests covering edits, deletes, and lookups."""

from __future__ import annotations

from pathlib import Path

import pytest

from docshelf.errors import (
    DocumentFileMissingError,
    DocumentNotFoundError,
    InvalidInputError,
    PersistenceFailedError,
)
from docshelf.search import DocumentQuery
from docshelf.service import ArchiveService
from docshelf.state import DocumentRecord, JsonDocumentStore, StateError


class _SaveFailingStore(JsonDocumentStore):
    """Store whose updates always fail."""

    def save(self, record: DocumentRecord) -> DocumentRecord:
        raise StateError("store unavailable")


def _write_pdf(directory: Path, name: str = "invoice.pdf") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(b"%PDF-1.4 service test")
    return path


def _ingest(service: ArchiveService, tmp_path: Path, **metadata: object) -> DocumentRecord:
    """Stage and ingest one PDF with default metadata.

    Args:
        service: Service under test.
        tmp_path: Temporary directory provided by pytest.
        **metadata: Overrides for year, merchant_name, month, tags, or notes.

    Returns:
        DocumentRecord: The created record.
    """
    fields: dict[str, object] = {"year": 2023, "merchant_name": "Acme", "month": "March"}
    fields.update(metadata)
    name = f"invoice-{len(service.search())}.pdf"
    source = _write_pdf(tmp_path / "inbox", name)
    (record,) = service.ingest_paths([source], **fields)  # type: ignore[arg-type]
    return record


def test_ingest_paths_stages_copies_of_local_files(tmp_path: Path) -> None:
    service = ArchiveService(tmp_path / "archive")
    source = _write_pdf(tmp_path / "inbox")

    (record,) = service.ingest_paths([source], year=2024, merchant_name="Acme Corp", month="March")

    assert source.exists()
    assert record.original_name == "invoice.pdf"
    assert record.storage_path.startswith("2024/Acme-Corp/March/")
    assert record.stored_name.endswith("-invoice.pdf")
    assert list(service.staging_dir.iterdir()) == []


def test_ingests_in_the_same_millisecond_do_not_collide(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("docshelf.ingestion.staging.mint_timestamp", lambda: "1700000000000")
    service = ArchiveService(tmp_path / "archive")
    source = _write_pdf(tmp_path / "inbox")

    (first,) = service.ingest_paths([source], year=2024, merchant_name="Acme", month="March")
    (second,) = service.ingest_paths([source], year=2024, merchant_name="Acme", month="March")

    assert first.stored_name == "1700000000000-invoice.pdf"
    assert second.stored_name == "1700000000000-invoice-1.pdf"
    assert service.file_path(first.id) != service.file_path(second.id)
    assert service.file_path(second.id).read_bytes() == b"%PDF-1.4 service test"


def test_failed_relocation_save_restores_file_and_record(tmp_path: Path) -> None:
    """Ensure a failing save after relocation leaves file and record unchanged.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    root = tmp_path / "archive"
    record = _ingest(ArchiveService(root), tmp_path)
    service = ArchiveService(root, store=_SaveFailingStore(root.resolve()))
    state_path = root / ".docshelf" / "state.json"
    before = state_path.read_bytes()
    original = service.file_path(record.id)

    with pytest.raises(PersistenceFailedError):
        service.update(record.id, year=2024)

    assert state_path.read_bytes() == before
    assert service.get(record.id).year == 2023
    assert original.exists()
    assert not (service.root / "2024").exists()


def test_update_relocates_file_and_prunes_old_directories(tmp_path: Path) -> None:
    service = ArchiveService(tmp_path / "archive")
    record = _ingest(service, tmp_path, tags=[{"name": "Ink", "price": 3}])
    prefix = record.stored_name.split("-")[0]

    updated = service.update(record.id, year=2024, merchant_name="Acme Corp", month="April")

    assert updated.storage_path == f"2024/Acme-Corp/April/{prefix}-Acme-Corp-April-2024.pdf"
    assert updated.stored_name == f"{prefix}-Acme-Corp-April-2024.pdf"
    assert updated.tags == record.tags
    assert updated.created_at == record.created_at
    assert service.file_path(record.id).read_bytes() == b"%PDF-1.4 service test"
    assert not (service.root / "2023").exists()
    assert service.get(record.id) == updated


def test_update_without_hierarchy_change_keeps_file(tmp_path: Path) -> None:
    service = ArchiveService(tmp_path / "archive")
    record = _ingest(service, tmp_path, notes="first")

    updated = service.update(record.id, notes="second", tags=[{"name": "Toner", "price": 40}])

    assert updated.storage_path == record.storage_path
    assert updated.notes == "second"
    assert [tag.name for tag in updated.tags] == ["Toner"]

    cleared = service.update(record.id, tags=[])
    assert cleared.tags == []
    assert cleared.notes == "second"


def test_update_rejects_invalid_metadata(tmp_path: Path) -> None:
    service = ArchiveService(tmp_path / "archive")
    record = _ingest(service, tmp_path)

    with pytest.raises(InvalidInputError):
        service.update(record.id, month="Smarch")
    with pytest.raises(InvalidInputError):
        service.update(record.id, tags=[{"name": "Refund", "price": -1}])

    assert service.get(record.id) == record


def test_delete_removes_record_file_and_empty_directories(tmp_path: Path) -> None:
    service = ArchiveService(tmp_path / "archive")
    keep = _ingest(service, tmp_path, month="April")
    doomed = _ingest(service, tmp_path)
    doomed_path = service.file_path(doomed.id)

    deleted = service.delete(doomed.id)

    assert deleted.id == doomed.id
    assert not doomed_path.exists()
    assert not (service.root / "2023" / "Acme" / "March").exists()
    assert service.file_path(keep.id).exists()
    with pytest.raises(DocumentNotFoundError):
        service.get(doomed.id)


def test_unknown_ids_raise_not_found(tmp_path: Path) -> None:
    service = ArchiveService(tmp_path / "archive")

    with pytest.raises(DocumentNotFoundError):
        service.get("missing")
    with pytest.raises(DocumentNotFoundError):
        service.update("missing", year=2024)
    with pytest.raises(DocumentNotFoundError):
        service.delete("missing")


def test_file_path_reports_missing_backing_file(tmp_path: Path) -> None:
    service = ArchiveService(tmp_path / "archive")
    record = _ingest(service, tmp_path)
    service.file_path(record.id).unlink()

    with pytest.raises(DocumentFileMissingError):
        service.file_path(record.id)


def test_export_copies_under_original_name(tmp_path: Path) -> None:
    service = ArchiveService(tmp_path / "archive")
    record = _ingest(service, tmp_path)
    destination = tmp_path / "exports"
    destination.mkdir()

    exported = service.export(record.id, destination)

    assert exported == destination / record.original_name
    assert exported.read_bytes() == service.file_path(record.id).read_bytes()


def test_search_and_hierarchy(tmp_path: Path) -> None:
    service = ArchiveService(tmp_path / "archive")
    acme = _ingest(service, tmp_path, tags=[{"name": "Paper", "price": 9.5}])
    beta = _ingest(service, tmp_path, merchant_name="Beta", year=2024, month="January")

    assert [record.id for record in service.search(DocumentQuery(name="paper"))] == [acme.id]
    assert [record.id for record in service.search(DocumentQuery(price=9.5))] == [acme.id]
    assert [record.id for record in service.search(DocumentQuery(merchant="beta"))] == [beta.id]
    assert len(service.search(DocumentQuery(limit=1))) == 1

    years = service.hierarchy()
    assert [node.year for node in years] == [2024, 2023]
    assert years[1].merchants[0].name == "Acme"
    assert years[1].merchants[0].months[0].documents[0].id == acme.id
