"""Tests for two-phase relocation of stored documents."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from docshelf.errors import InvalidYearError, PlacementFailedError, RelocationFailedError
from docshelf.organization import (
    HierarchyPlacer,
    MoveOperation,
    RelocationManager,
    RenameOperation,
    needs_relocation,
)
from docshelf.state import DocumentRecord


class _RenameFailingManager(RelocationManager):
    def _rename(self, source: Path, destination: Path) -> None:
        raise PermissionError("rename denied")


def _stored_document(placer: HierarchyPlacer) -> DocumentRecord:
    """Write a stored file under 2023/Acme/March and describe it.

    Args:
        placer: Placer whose root receives the file.

    Returns:
        DocumentRecord: Record pointing at the stored file.
    """
    directory = placer.root / "2023" / "Acme" / "March"
    directory.mkdir(parents=True)
    (directory / "1700-receipt.pdf").write_bytes(b"%PDF")
    return DocumentRecord(
        year=2023,
        merchant_name="Acme",
        month="March",
        original_name="receipt.pdf",
        stored_name="1700-receipt.pdf",
        storage_path="2023/Acme/March/1700-receipt.pdf",
        mime_type="application/pdf",
        size=4,
    )


def test_relocate_moves_and_renames_then_commits(tmp_path: Path) -> None:
    """Ensure a committed relocation leaves only the new location behind.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    placer = HierarchyPlacer(tmp_path / "archive")
    document = _stored_document(placer)
    original = placer.resolve(document.storage_path)

    with RelocationManager(placer).relocate(document, 2024, "Acme Corp", "April") as pending:
        assert pending.status == "pending"
        assert pending.storage_path == "2024/Acme-Corp/April/1700-Acme-Corp-April-2024.pdf"
        assert pending.stored_name == "1700-Acme-Corp-April-2024.pdf"
        assert [type(op) for op in pending.operations] == [MoveOperation, RenameOperation]

    assert pending.status == "committed"
    assert not original.exists()
    assert pending.final_path.read_bytes() == b"%PDF"
    assert not (placer.root / "2023").exists()


def test_exception_in_scope_rolls_back(tmp_path: Path) -> None:
    placer = HierarchyPlacer(tmp_path / "archive")
    document = _stored_document(placer)
    original = placer.resolve(document.storage_path)

    with pytest.raises(RuntimeError, match="store down"):
        with RelocationManager(placer).relocate(document, 2024, "Acme", "March") as pending:
            raise RuntimeError("store down")

    assert pending.status == "rolled_back"
    assert pending.restore_error is None
    assert original.read_bytes() == b"%PDF"
    assert not (placer.root / "2024").exists()


def test_rename_failure_unwinds_move(tmp_path: Path) -> None:
    placer = HierarchyPlacer(tmp_path / "archive")
    document = _stored_document(placer)
    original = placer.resolve(document.storage_path)

    with pytest.raises(RelocationFailedError) as excinfo:
        _RenameFailingManager(placer).relocate(document, 2024, "Acme", "March")

    assert isinstance(excinfo.value.__cause__, PermissionError)
    assert original.exists()
    assert not (placer.root / "2024").exists()


def test_occupied_destination_fails_without_moving(tmp_path: Path) -> None:
    placer = HierarchyPlacer(tmp_path / "archive")
    document = _stored_document(placer)
    original = placer.resolve(document.storage_path)
    occupant = placer.root / "2024" / "Acme" / "March" / document.stored_name
    occupant.parent.mkdir(parents=True)
    occupant.write_bytes(b"other")

    with pytest.raises(RelocationFailedError) as excinfo:
        RelocationManager(placer).relocate(document, 2024, "Acme", "March")

    assert isinstance(excinfo.value.__cause__, PlacementFailedError)
    assert original.read_bytes() == b"%PDF"
    assert occupant.read_bytes() == b"other"
    assert sorted(path.name for path in occupant.parent.iterdir()) == [document.stored_name]


def test_unwritable_target_leaves_no_new_directories(tmp_path: Path) -> None:
    placer = HierarchyPlacer(tmp_path / "archive")
    document = _stored_document(placer)
    original = placer.resolve(document.storage_path)
    blocker = placer.root / "2024"
    blocker.write_bytes(b"not a directory")

    with pytest.raises(RelocationFailedError):
        RelocationManager(placer).relocate(document, 2024, "Acme", "March")

    assert original.read_bytes() == b"%PDF"
    assert blocker.is_file()
    assert sorted(path.name for path in placer.root.iterdir()) == ["2023", "2024"]
    assert [path.name for path in (placer.root / "2023").iterdir()] == ["Acme"]


def test_invalid_year_leaves_file_untouched(tmp_path: Path) -> None:
    placer = HierarchyPlacer(tmp_path / "archive")
    document = _stored_document(placer)
    manager = RelocationManager(placer)

    with pytest.raises(InvalidYearError):
        manager.relocate(document, "abc", "Acme", "March")  # type: ignore[arg-type]

    assert placer.resolve(document.storage_path).exists()


def test_rename_collision_gets_numeric_suffix(tmp_path: Path) -> None:
    placer = HierarchyPlacer(tmp_path / "archive")
    document = _stored_document(placer)
    target = placer.root / "2024" / "Acme" / "March"
    target.mkdir(parents=True)
    (target / "1700-Acme-March-2024.pdf").write_bytes(b"other")

    pending = RelocationManager(placer).relocate(document, 2024, "Acme", "March")
    pending.commit()

    assert pending.stored_name == "1700-Acme-March-2024-1.pdf"
    assert (target / "1700-Acme-March-2024.pdf").read_bytes() == b"other"
    rename = pending.operations[-1]
    assert isinstance(rename, RenameOperation) and rename.conflict_applied


def test_failed_restore_is_logged_not_raised(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    placer = HierarchyPlacer(tmp_path / "archive")
    document = _stored_document(placer)
    original = placer.resolve(document.storage_path)
    pending = RelocationManager(placer).relocate(document, 2024, "Acme", "March")

    # Occupy the original month directory with a file so it cannot be recreated.
    original.parent.rmdir()
    original.parent.write_text("blocker", encoding="utf-8")

    with caplog.at_level(logging.ERROR, logger="docshelf"):
        restored = pending.rollback()

    assert restored is False
    assert isinstance(pending.restore_error, OSError)
    assert (placer.root / "2024" / "Acme" / "March" / "1700-receipt.pdf").exists()
    assert any("Failed to restore document" in message for message in caplog.messages)


def test_commit_and_rollback_are_single_use(tmp_path: Path) -> None:
    placer = HierarchyPlacer(tmp_path / "archive")
    pending = RelocationManager(placer).relocate(
        _stored_document(placer), 2024, "Acme", "March"
    )
    pending.commit()

    with pytest.raises(RuntimeError):
        pending.rollback()
    with pytest.raises(RuntimeError):
        pending.commit()


def test_needs_relocation_detects_hierarchy_changes(tmp_path: Path) -> None:
    document = _stored_document(HierarchyPlacer(tmp_path / "archive"))

    assert not needs_relocation(document, 2023, "Acme", "March")
    assert needs_relocation(document, 2024, "Acme", "March")
    assert needs_relocation(document, 2023, "Acme Corp", "March")
    assert needs_relocation(document, 2023, "Acme", "April")
