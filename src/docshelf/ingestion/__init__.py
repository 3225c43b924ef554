"""Upload ingestion: staging, normalization, merging, and orchestration."""

from .cleanup import discard_files
from .merger import ImagePdfMerger
from .models import NormalizedUpload, UploadedFile
from .normalizer import UploadNormalizer
from .pipeline import IngestionPipeline
from .staging import UploadStager, detect_mime_type

__all__ = [
    "discard_files",
    "ImagePdfMerger",
    "NormalizedUpload",
    "UploadedFile",
    "UploadNormalizer",
    "IngestionPipeline",
    "UploadStager",
    "detect_mime_type",
]
