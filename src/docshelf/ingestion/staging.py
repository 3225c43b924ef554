"""Staging of local files as upload blobs.

Stands in for a multipart upload layer: sources are validated against the
upload limits and copied into the staging directory under a
``<timestamp>-<sanitized name>`` filename, so the user's originals are
never moved by ingestion.
"""

from __future__ import annotations

import logging
import mimetypes
import shutil
from pathlib import Path
from typing import Sequence

from docshelf.config.models import UploadSettings
from docshelf.errors import InvalidInputError, NoFilesProvidedError
from docshelf.organization.naming import mint_timestamp, sanitize_filename

from .cleanup import discard_files
from .models import UploadedFile

LOGGER = logging.getLogger(__name__)

mimetypes.add_type("application/msword", ".doc")
mimetypes.add_type(
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document", ".docx"
)


def detect_mime_type(path: Path) -> str:
    """Return the MIME type implied by a file's extension."""
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or "application/octet-stream"


class UploadStager:
    """Validate and copy local files into the staging directory."""

    def __init__(self, staging_dir: Path, settings: UploadSettings | None = None) -> None:
        self.staging_dir = staging_dir
        self.settings = settings or UploadSettings()

    def stage(self, sources: Sequence[Path]) -> list[UploadedFile]:
        """Copy ``sources`` into staging and describe them as upload blobs.

        Args:
            sources: Local files in upload order.

        Returns:
            list[UploadedFile]: Staged copies in the same order.

        Raises:
            NoFilesProvidedError: If ``sources`` is empty.
            InvalidInputError: If the batch breaks an upload limit.
        """
        if not sources:
            raise NoFilesProvidedError("At least one document file is required.")
        if len(sources) > self.settings.max_files:
            raise InvalidInputError(
                f"At most {self.settings.max_files} files can be uploaded at once."
            )

        candidates = [(source, self._validate(source)) for source in sources]

        self.staging_dir.mkdir(parents=True, exist_ok=True)
        staged: list[UploadedFile] = []
        try:
            for source, mime_type in candidates:
                target = self._target(source)
                shutil.copy2(source, target)
                staged.append(
                    UploadedFile(
                        path=target,
                        original_name=source.name,
                        mime_type=mime_type,
                        size=target.stat().st_size,
                    )
                )
        except OSError as exc:
            discard_files((upload.path for upload in staged), reason="failed staging")
            raise InvalidInputError(f"Could not stage {source}: {exc}") from exc

        LOGGER.debug("Staged %d upload(s) in %s", len(staged), self.staging_dir)
        return staged

    def _validate(self, source: Path) -> str:
        if not source.is_file():
            raise InvalidInputError(f"Not a file: {source}")
        limit = self.settings.max_file_size_mb * 1024 * 1024
        if source.stat().st_size > limit:
            raise InvalidInputError(
                f"{source.name} exceeds the {self.settings.max_file_size_mb} MB upload limit."
            )
        mime_type = detect_mime_type(source)
        if mime_type not in self.settings.allowed_mime_types:
            raise InvalidInputError(
                f"{source.name} ({mime_type}) is not an allowed type; accepted types: "
                + ", ".join(self.settings.allowed_mime_types)
            )
        return mime_type

    def _target(self, source: Path) -> Path:
        stamp = mint_timestamp()
        name = sanitize_filename(source.name)
        candidate = self.staging_dir / f"{stamp}-{name}"
        counter = 1
        while candidate.exists():
            stem, dot, extension = name.rpartition(".")
            numbered = f"{stem}-{counter}.{extension}" if dot else f"{name}-{counter}"
            candidate = self.staging_dir / f"{stamp}-{numbered}"
            counter += 1
        return candidate


__all__ = ["UploadStager", "detect_mime_type"]
