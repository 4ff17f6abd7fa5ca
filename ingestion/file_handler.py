"""File format detection and source image construction."""

import mimetypes
from dataclasses import dataclass
from typing import Optional
from core.config import settings
from core.errors import FileTooLarge, FormatRejected
from core.logging import log
from core.utils import normalize_mime_type

SUPPORTED_MIME_TYPES = frozenset({
    'image/jpeg',
    'image/png',
    'image/gif',
    'image/bmp',
    'image/webp',
})

# Common non-canonical spellings sent by browsers and OS pickers
MIME_ALIASES = {
    'image/jpg': 'image/jpeg',
    'image/pjpeg': 'image/jpeg',
    'image/x-ms-bmp': 'image/bmp',
    'image/x-bmp': 'image/bmp',
}


@dataclass(frozen=True)
class SourceImage:
    """Raw uploaded image: opaque bytes plus the declared MIME type."""
    content: bytes
    mime_type: str
    filename: Optional[str] = None
    
    @property
    def size_bytes(self) -> int:
        return len(self.content)


class FileHandler:
    """Handles format detection and boundary validation of uploads."""
    
    @staticmethod
    def detect_mime_type(declared: Optional[str], filename: Optional[str] = None) -> Optional[str]:
        """Resolve the MIME type of an upload.
        
        The declared type wins; the filename extension is only consulted
        when nothing (or a generic octet-stream) was declared.
        
        Args:
            declared: MIME type declared by the client
            filename: Original filename, if any
            
        Returns:
            Optional[str]: Canonical MIME type, or None if it cannot be determined
        """
        mime_type = normalize_mime_type(declared) if declared else ""
        if not mime_type or mime_type == 'application/octet-stream':
            guessed, _ = mimetypes.guess_type(filename or "")
            mime_type = normalize_mime_type(guessed) if guessed else ""
        if not mime_type:
            return None
        return MIME_ALIASES.get(mime_type, mime_type)
    
    @staticmethod
    def is_supported(mime_type: Optional[str]) -> bool:
        return mime_type in SUPPORTED_MIME_TYPES
    
    @staticmethod
    def build_source_image(content: bytes,
                           mime_type: Optional[str],
                           filename: Optional[str] = None,
                           max_size_mb: Optional[int] = None) -> SourceImage:
        """Validate an upload and wrap it as a SourceImage.
        
        Args:
            content: Raw file bytes
            mime_type: Declared MIME type
            filename: Original filename (used for logging and type guessing)
            max_size_mb: Size limit in megabytes (default from config)
            
        Returns:
            SourceImage: Validated source image
            
        Raises:
            FormatRejected: If the type is unsupported or the payload is empty
            FileTooLarge: If the payload exceeds the size limit
        """
        resolved = FileHandler.detect_mime_type(mime_type, filename)
        if not FileHandler.is_supported(resolved):
            log.warning(f"Rejected upload {filename!r}: unsupported type {mime_type!r}")
            raise FormatRejected(
                f"Unsupported image type: {mime_type or 'unknown'}. Supported: JPG, PNG, GIF, BMP, WebP",
                detail={"mime_type": mime_type, "filename": filename},
            )
        
        if not content:
            raise FormatRejected("Uploaded file is empty", detail={"filename": filename})
        
        limit_mb = max_size_mb if max_size_mb is not None else settings.MAX_FILE_SIZE_MB
        size_mb = len(content) / (1024 * 1024)
        if size_mb > limit_mb:
            log.warning(f"Rejected upload {filename!r}: {size_mb:.1f} MB exceeds {limit_mb} MB")
            raise FileTooLarge(
                f"File too large. Maximum size: {limit_mb}MB",
                detail={"size_mb": round(size_mb, 2), "max_size_mb": limit_mb},
            )
        
        log.info(f"Accepted upload {filename!r} ({resolved}, {len(content) / 1024:.1f} KB)")
        return SourceImage(content=content, mime_type=resolved, filename=filename)
