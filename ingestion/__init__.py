"""Upload ingestion: source image construction and boundary validation."""

from ingestion.file_handler import FileHandler, SourceImage, SUPPORTED_MIME_TYPES

__all__ = [
    'FileHandler',
    'SourceImage',
    'SUPPORTED_MIME_TYPES',
]
