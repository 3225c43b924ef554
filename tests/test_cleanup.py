"""Tests for best-effort file cleanup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from docshelf.ingestion import discard_files


def test_discard_files_removes_existing_and_ignores_missing(tmp_path: Path) -> None:
    present = tmp_path / "present.pdf"
    present.write_bytes(b"data")

    failed = discard_files([present, tmp_path / "missing.pdf", present], reason="test")

    assert failed == []
    assert not present.exists()


def test_discard_files_logs_instead_of_raising(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Ensure a path that cannot be unlinked is reported, not raised.

    Args:
        tmp_path: Temporary directory provided by pytest.
        caplog: Log capture fixture.
    """
    directory = tmp_path / "not-a-file"
    directory.mkdir()

    with caplog.at_level(logging.WARNING, logger="docshelf"):
        failed = discard_files([directory], reason="test cleanup")

    assert failed == [directory]
    assert directory.exists()
    assert any("test cleanup" in message for message in caplog.messages)
