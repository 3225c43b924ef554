"""Shared fixtures for docshelf tests."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import fitz  # PyMuPDF
import pytest
from PIL import Image

from docshelf.ingestion import UploadedFile

ImageFactory = Callable[..., UploadedFile]
PdfFactory = Callable[..., UploadedFile]


@pytest.fixture
def uploads_dir(tmp_path: Path) -> Path:
    """Return a directory standing in for the upload staging area.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    directory = tmp_path / "uploads"
    directory.mkdir()
    return directory


@pytest.fixture
def make_image(uploads_dir: Path) -> ImageFactory:
    """Return a factory writing PNG or JPEG uploads of a given pixel size."""

    def _make(name: str = "page.png", size: tuple[int, int] = (40, 60)) -> UploadedFile:
        path = uploads_dir / name
        jpeg = path.suffix.lower() in {".jpg", ".jpeg"}
        Image.new("RGB", size, color=(200, 30, 30)).save(path, format="JPEG" if jpeg else "PNG")
        return UploadedFile(
            path=path,
            original_name=name,
            mime_type="image/jpeg" if jpeg else "image/png",
            size=path.stat().st_size,
        )

    return _make


@pytest.fixture
def make_pdf(uploads_dir: Path) -> PdfFactory:
    """Return a factory writing single-page PDF uploads."""

    def _make(name: str = "invoice.pdf") -> UploadedFile:
        path = uploads_dir / name
        document = fitz.open()
        document.new_page()
        document.save(str(path))
        document.close()
        return UploadedFile(
            path=path, original_name=name, mime_type="application/pdf", size=path.stat().st_size
        )

    return _make


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point HOME at a temporary directory and drop ``DOCSHELF__`` overrides."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for key in [key for key in os.environ if key.startswith("DOCSHELF__")]:
        monkeypatch.delenv(key)
