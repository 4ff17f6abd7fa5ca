"""Recognition endpoint: image upload in, cleaned speakable text out."""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
from typing import Any, Dict, List
from core.errors import (
    DecodeError,
    EncodeError,
    FileTooLarge,
    FormatRejected,
    ReaderError,
    RecognitionFailure,
    RecognitionTimeout,
)
from core.logging import log
from core.utils import generate_request_id
from ingestion.file_handler import FileHandler
from ocr.pipeline import RecognitionPipeline
from ocr.progress import MESSAGE_COMPLETE, MESSAGE_EMPTY
from speech.controller import SpeechOptions

router = APIRouter(prefix="/api", tags=["recognize"])

# Most specific first: FileTooLarge is a FormatRejected
ERROR_STATUS = (
    (FileTooLarge, 413),
    (FormatRejected, 415),
    (DecodeError, 422),
    (EncodeError, 500),
    (RecognitionTimeout, 504),
    (RecognitionFailure, 502),
)

_pipeline = None


def get_pipeline() -> RecognitionPipeline:
    """Shared pipeline instance (it holds no per-request state)."""
    global _pipeline
    if _pipeline is None:
        _pipeline = RecognitionPipeline()
    return _pipeline


class RecognizeResponse(BaseModel):
    """Recognition response model."""
    request_id: str
    text: str
    has_text: bool
    message: str
    raw_text: str
    dimensions: Dict[str, int]
    progress: List[Dict[str, Any]]
    speech: Dict[str, Any]


def status_for(error: ReaderError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 500


@router.post("/recognize", response_model=RecognizeResponse)
async def recognize_image(file: UploadFile = File(...),
                          pipeline: RecognitionPipeline = Depends(get_pipeline)):
    """Recognize text in an uploaded image.
    
    Supports: JPG, PNG, GIF, BMP, WebP
    
    Args:
        file: Uploaded image
        pipeline: Recognition pipeline (injected)
        
    Returns:
        RecognizeResponse: Cleaned text, diagnostics and speech options
        
    Raises:
        HTTPException: 413/415 for rejected uploads, 422/500 for image errors,
                       502/504 for OCR errors
    """
    request_id = generate_request_id()
    with log.contextualize(request_id=request_id):
        try:
            content = await file.read()
            source = FileHandler.build_source_image(
                content=content,
                mime_type=file.content_type,
                filename=file.filename,
            )
            
            outcome = await run_in_threadpool(pipeline.run_detailed, source)
            
            log.info(f"Recognized {len(outcome.text)} chars from {file.filename!r}")
            
            return RecognizeResponse(
                request_id=request_id,
                text=outcome.text,
                has_text=outcome.has_text,
                message=MESSAGE_COMPLETE if outcome.has_text else MESSAGE_EMPTY,
                raw_text=outcome.raw_text,
                dimensions={
                    "width": outcome.width,
                    "height": outcome.height,
                    "source_width": outcome.source_size[0],
                    "source_height": outcome.source_size[1],
                },
                progress=[event.to_dict() for event in outcome.progress],
                speech=SpeechOptions.from_settings().to_dict(),
            )
        
        except ReaderError as e:
            status_code = status_for(e)
            log.error(f"Recognition failed ({e.code}, HTTP {status_code}): {e.message}")
            raise HTTPException(
                status_code=status_code,
                detail={**e.to_dict(), "request_id": request_id},
            )
