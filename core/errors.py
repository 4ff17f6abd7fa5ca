"""Error taxonomy for the recognition pipeline.

Every failure the pipeline can surface derives from ReaderError and carries a
stable machine-readable code. Errors propagate to the caller unmodified; the
pipeline never retries and never degrades silently.
"""

from typing import Any, Dict, Optional


class ReaderError(Exception):
    """Base class for all reader errors."""
    
    code = "READER_ERROR"
    
    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}
    
    def to_dict(self) -> Dict[str, Any]:
        """Serializable form used in API error payloads."""
        return {"code": self.code, "message": self.message, "detail": self.detail}


class FormatRejected(ReaderError):
    """Input rejected at the boundary, before the pipeline runs."""
    code = "FORMAT_REJECTED"


class FileTooLarge(FormatRejected):
    code = "FILE_TOO_LARGE"


class DecodeError(ReaderError):
    """Image bytes could not be decoded into pixels."""
    code = "IMAGE_DECODE_FAILED"


class EncodeError(ReaderError):
    """Normalized raster could not be encoded for the OCR engine."""
    code = "IMAGE_ENCODE_FAILED"


class RecognitionTimeout(ReaderError):
    """No OCR result arrived within the timeout."""
    
    code = "OCR_TIMEOUT"
    
    def __init__(self, timeout_ms: int, message: Optional[str] = None):
        super().__init__(
            message or f"OCR did not finish within {timeout_ms} ms",
            detail={"timeout_ms": timeout_ms},
        )
        self.timeout_ms = timeout_ms


class RecognitionFailure(ReaderError):
    """The OCR capability itself reported an error."""
    code = "OCR_BACKEND_ERROR"


class NothingToRead(ReaderError):
    code = "NOTHING_TO_READ"
