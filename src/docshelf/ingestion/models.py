"""Upload blob models flowing through ingestion."""

from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import BaseModel, Field


class UploadedFile(BaseModel):
    """A file blob handed to the core.

    Attributes:
        path: Current location of the file on disk.
        original_name: Name supplied by the user at upload time.
        mime_type: MIME type of the file.
        size: Size in bytes.
    """

    path: Path
    original_name: str
    mime_type: str
    size: int = Field(ge=0)

    @property
    def filename(self) -> str:
        """Return the on-disk filename."""
        return self.path.name

    @property
    def is_image(self) -> bool:
        """Return whether the blob is a raster image."""
        return self.mime_type.lower().startswith("image/")


class NormalizedUpload(BaseModel):
    """Result of normalizing an upload batch.

    Attributes:
        files: Files to place and record, in upload order.
        generated: Files created during normalization (e.g. a merged PDF).
    """

    files: List[UploadedFile] = Field(default_factory=list)
    generated: List[UploadedFile] = Field(default_factory=list)


__all__ = ["UploadedFile", "NormalizedUpload"]
