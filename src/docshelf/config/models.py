"""Configuration models describing docshelf settings."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_ALLOWED_MIME_TYPES = [
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/png",
]


class DocshelfBaseModel(BaseModel):
    """Shared configuration for docshelf settings models."""

    model_config = ConfigDict(extra="forbid")


class StorageSettings(DocshelfBaseModel):
    """Location of the archive on disk.

    Attributes:
        root: Storage root; every record's storage path is relative to it.
        state_dirname: Directory under the root holding metadata and logs.
        staging_dirname: Directory under the state directory receiving uploads.
    """

    root: str = "~/.docshelf/archive"
    state_dirname: str = ".docshelf"
    staging_dirname: str = "staging"


class UploadSettings(DocshelfBaseModel):
    """Limits applied when staging an upload batch.

    Attributes:
        max_files: Maximum number of files accepted in one batch.
        max_file_size_mb: Maximum size of a single file.
        allowed_mime_types: MIME types accepted for upload.
    """

    max_files: int = Field(default=20, ge=1)
    max_file_size_mb: int = Field(default=50, ge=1)
    allowed_mime_types: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_MIME_TYPES)
    )


class MergeSettings(DocshelfBaseModel):
    """Page geometry used when image dimensions cannot be read.

    Attributes:
        page_width: Fallback page width in points.
        page_height: Fallback page height in points.
    """

    page_width: float = Field(default=595.0, gt=0)
    page_height: float = Field(default=842.0, gt=0)


class ScannerSettings(DocshelfBaseModel):
    """Device scan utility invocation.

    Attributes:
        command: Executable producing PNG data on stdout.
        device: Optional scanner device name.
        mode: Optional colour mode (e.g. ``Color`` or ``Gray``).
        resolution: Optional resolution in DPI.
    """

    command: str = "scanimage"
    device: Optional[str] = None
    mode: Optional[str] = None
    resolution: Optional[int] = Field(default=None, gt=0)


class LoggingSettings(DocshelfBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    max_size_mb: int = 10
    backup_count: int = 5


class CLIOptions(DocshelfBaseModel):
    """CLI behavior defaults.

    Attributes:
        list_limit: Default page size for ``docshelf list``.
        quiet_default: Whether commands suppress non-error output by default.
    """

    list_limit: int = Field(default=50, ge=1, le=100)
    quiet_default: bool = False


class DocshelfConfig(DocshelfBaseModel):
    """Top-level configuration struct for docshelf."""

    storage: StorageSettings = Field(default_factory=StorageSettings)
    uploads: UploadSettings = Field(default_factory=UploadSettings)
    merge: MergeSettings = Field(default_factory=MergeSettings)
    scanner: ScannerSettings = Field(default_factory=ScannerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "DEFAULT_ALLOWED_MIME_TYPES",
    "DocshelfBaseModel",
    "StorageSettings",
    "UploadSettings",
    "MergeSettings",
    "ScannerSettings",
    "LoggingSettings",
    "CLIOptions",
    "DocshelfConfig",
]
