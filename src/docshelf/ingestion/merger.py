"""Combine the images of one upload into a single generated PDF."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import fitz  # PyMuPDF
from PIL import Image

from docshelf.errors import InvalidInputError, MergeFailedError
from docshelf.organization.naming import mint_timestamp, sanitize_segment

from .cleanup import discard_files
from .models import UploadedFile

LOGGER = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
DEFAULT_PAGE_SIZE = (595.0, 842.0)


class ImagePdfMerger:
    """Render an ordered batch of images as one PDF, one page per image."""

    def __init__(
        self,
        output_dir: Path,
        *,
        default_page_size: tuple[float, float] = DEFAULT_PAGE_SIZE,
    ) -> None:
        """Initialize the merger.

        Args:
            output_dir: Directory receiving generated PDFs.
            default_page_size: Page size in points used when an image's
                dimensions cannot be read.
        """
        self.output_dir = output_dir
        self.default_page_size = default_page_size

    def merge(self, images: Sequence[UploadedFile], name_hint: str | None = None) -> UploadedFile:
        """Write ``images`` into a new PDF.

        Each page is sized to its image's pixel dimensions and the image fills
        the page. Input files are left in place.

        Args:
            images: Images in page order.
            name_hint: Base name for the output; defaults to the first image's name.

        Returns:
            UploadedFile: Descriptor of the generated ``<timestamp>-<name>.pdf``.

        Raises:
            InvalidInputError: If ``images`` is empty or contains non-images.
            MergeFailedError: If rendering or writing fails. No partial file remains.
        """
        if not images:
            raise InvalidInputError("At least one image is required to build a PDF.")
        non_images = [image.original_name for image in images if not image.is_image]
        if non_images:
            raise InvalidInputError(f"Cannot merge non-image files: {', '.join(non_images)}")

        base_name = sanitize_segment(name_hint, "") or sanitize_segment(
            Path(images[0].original_name).stem, "document"
        )
        self.output_dir.mkdir(parents=True, exist_ok=True)
        destination = self._destination(base_name)

        document = fitz.open()
        try:
            for image in images:
                self._add_page(document, image)
            self._write(document, destination)
        except Exception as exc:
            discard_files([destination], reason="failed PDF merge")
            raise MergeFailedError(
                f"Could not merge {len(images)} image(s) into a PDF: {exc}"
            ) from exc
        finally:
            document.close()

        LOGGER.info("Merged %d image(s) into %s", len(images), destination.name)
        return UploadedFile(
            path=destination,
            original_name=f"{base_name}.pdf",
            mime_type=PDF_MIME_TYPE,
            size=destination.stat().st_size,
        )

    def page_size(self, path: Path) -> tuple[float, float]:
        """Return the page size for an image, falling back to the default size."""
        try:
            with Image.open(path) as img:
                width, height = img.size
        except OSError as exc:
            LOGGER.debug("Could not read dimensions of %s: %s", path, exc)
            return self.default_page_size
        if width <= 0 or height <= 0:
            return self.default_page_size
        return float(width), float(height)

    def _add_page(self, document: fitz.Document, image: UploadedFile) -> None:
        width, height = self.page_size(image.path)
        page = document.new_page(width=width, height=height)
        page.insert_image(page.rect, filename=str(image.path), keep_proportion=False)

    def _write(self, document: fitz.Document, destination: Path) -> None:
        document.save(str(destination), garbage=4, deflate=True)

    def _destination(self, base_name: str) -> Path:
        stamp = mint_timestamp()
        candidate = self.output_dir / f"{stamp}-{base_name}.pdf"
        counter = 1
        while candidate.exists():
            candidate = self.output_dir / f"{stamp}-{base_name}-{counter}.pdf"
            counter += 1
        return candidate


__all__ = ["ImagePdfMerger", "PDF_MIME_TYPE", "DEFAULT_PAGE_SIZE"]
