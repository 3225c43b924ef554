"""Normalization of a raw upload batch before placement."""

from __future__ import annotations

import logging
from typing import Sequence

from docshelf.errors import UnsupportedMixedBatchError

from .cleanup import discard_files
from .merger import ImagePdfMerger
from .models import NormalizedUpload, UploadedFile

LOGGER = logging.getLogger(__name__)


class UploadNormalizer:
    """Decide whether an upload passes through, merges, or is rejected.

    * every file is an image: merge them into one PDF and drop the originals;
    * some files are images: reject the batch without touching anything;
    * no images: pass the files through unchanged.
    """

    def __init__(self, merger: ImagePdfMerger) -> None:
        self.merger = merger

    def normalize(
        self, files: Sequence[UploadedFile], name_hint: str | None = None
    ) -> NormalizedUpload:
        """Normalize ``files``.

        Args:
            files: Uploaded blobs in upload order.
            name_hint: Base name for a merged PDF.

        Returns:
            NormalizedUpload: Files to store plus any files generated here.

        Raises:
            UnsupportedMixedBatchError: If images are mixed with other types.
            MergeFailedError: If the images cannot be merged.
        """
        if not files:
            return NormalizedUpload()

        image_count = sum(1 for upload in files if upload.is_image)
        if image_count == 0:
            return NormalizedUpload(files=list(files))
        if image_count != len(files):
            raise UnsupportedMixedBatchError()

        merged = self.merger.merge(files, name_hint)
        discard_files((upload.path for upload in files), reason="image merge")
        LOGGER.debug("Replaced %d image upload(s) with %s", len(files), merged.filename)
        return NormalizedUpload(files=[merged], generated=[merged])


__all__ = ["UploadNormalizer"]
