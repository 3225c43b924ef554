"""Tests for staging local files as upload blobs."""

from __future__ import annotations

from pathlib import Path

import pytest

from docshelf.config.models import UploadSettings
from docshelf.errors import InvalidInputError, NoFilesProvidedError
from docshelf.ingestion import UploadStager, detect_mime_type


def _write(directory: Path, name: str, size: int = 16) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(b"x" * size)
    return path


def test_stage_copies_with_timestamped_sanitized_names(tmp_path: Path) -> None:
    """Ensure staged copies keep order, originals, and detected types.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    sources = [_write(tmp_path / "inbox", "My Receipt.PDF"), _write(tmp_path / "inbox", "b.png")]
    stager = UploadStager(tmp_path / "staging")

    staged = stager.stage(sources)

    assert [upload.original_name for upload in staged] == ["My Receipt.PDF", "b.png"]
    assert [upload.mime_type for upload in staged] == ["application/pdf", "image/png"]
    stamp, _, rest = staged[0].filename.partition("-")
    assert stamp.isdigit()
    assert rest == "My-Receipt.pdf"
    assert all(upload.path.parent == tmp_path / "staging" for upload in staged)
    assert all(source.exists() for source in sources)


def test_stage_rejects_disallowed_types(tmp_path: Path) -> None:
    source = _write(tmp_path / "inbox", "notes.txt")

    with pytest.raises(InvalidInputError, match="not an allowed type"):
        UploadStager(tmp_path / "staging").stage([source])

    assert not (tmp_path / "staging").exists()


def test_stage_enforces_batch_and_size_limits(tmp_path: Path) -> None:
    settings = UploadSettings(max_files=1, max_file_size_mb=1)
    stager = UploadStager(tmp_path / "staging", settings)
    small = _write(tmp_path / "inbox", "a.pdf")
    large = _write(tmp_path / "inbox", "big.pdf", size=1024 * 1024 + 1)

    with pytest.raises(NoFilesProvidedError):
        stager.stage([])
    with pytest.raises(InvalidInputError, match="At most 1"):
        stager.stage([small, small])
    with pytest.raises(InvalidInputError, match="upload limit"):
        stager.stage([large])


def test_stage_makes_duplicate_names_unique(tmp_path: Path) -> None:
    first = _write(tmp_path / "one", "scan.pdf")
    second = _write(tmp_path / "two", "scan.pdf")

    staged = UploadStager(tmp_path / "staging").stage([first, second])

    assert len({upload.path for upload in staged}) == 2


def test_detect_mime_type_handles_word_documents() -> None:
    assert detect_mime_type(Path("letter.docx")) == (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    )
    assert detect_mime_type(Path("letter.doc")) == "application/msword"
    assert detect_mime_type(Path("mystery")) == "application/octet-stream"
