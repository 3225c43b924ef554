"""Device scanning as a source of upload blobs."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from docshelf.config.models import ScannerSettings
from docshelf.errors import ScanFailedError
from docshelf.ingestion.models import UploadedFile
from docshelf.organization.naming import mint_timestamp

LOGGER = logging.getLogger(__name__)


class DeviceScanner:
    """Capture one page from a scanner through an external scan utility."""

    def __init__(self, settings: ScannerSettings | None = None) -> None:
        self.settings = settings or ScannerSettings()

    def build_args(self) -> list[str]:
        """Return the scan utility command line."""
        args = [self.settings.command, "--format=png"]
        if self.settings.device:
            args.append(f"--device-name={self.settings.device}")
        if self.settings.mode:
            args.append(f"--mode={self.settings.mode}")
        if self.settings.resolution:
            args.append(f"--resolution={self.settings.resolution}")
        return args

    def scan(self, output_dir: Path) -> UploadedFile:
        """Scan a page into ``output_dir`` as a PNG upload blob.

        Raises:
            ScanFailedError: If the utility is missing, fails, or returns no data.
        """
        args = self.build_args()
        LOGGER.debug("Running scan command: %s", " ".join(args))
        try:
            completed = subprocess.run(args, capture_output=True, check=False)
        except OSError as exc:
            raise ScanFailedError(f"Could not run {self.settings.command}: {exc}") from exc

        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise ScanFailedError(
                stderr or f"{self.settings.command} exited with code {completed.returncode}"
            )
        if not completed.stdout:
            raise ScanFailedError(f"{self.settings.command} produced no image data.")

        output_dir.mkdir(parents=True, exist_ok=True)
        target = output_dir / f"{mint_timestamp()}-scan.png"
        try:
            target.write_bytes(completed.stdout)
        except OSError as exc:
            raise ScanFailedError(f"Could not save scanned image: {exc}") from exc

        LOGGER.info("Scanned %d bytes into %s", len(completed.stdout), target.name)
        return UploadedFile(
            path=target,
            original_name="scan.png",
            mime_type="image/png",
            size=len(completed.stdout),
        )


__all__ = ["DeviceScanner"]
