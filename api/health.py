"""Health check endpoint."""

from fastapi import APIRouter
from pydantic import BaseModel
from typing import Dict, Any
from ocr.tesseract_recognizer import TesseractRecognizer

router = APIRouter(prefix="/api", tags=["health"])

VERSION = "1.0.0"


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    version: str
    dependencies: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
def health_check():
    """Health check endpoint.
    
    Runs in the threadpool; `tesseract --version` blocks.
    
    Returns:
        HealthResponse: System status and dependency checks
    """
    tesseract_version = TesseractRecognizer().version()
    dependencies = {
        "opencv": "available",
        "pillow": "available",
        "tesseract": tesseract_version or "unavailable",
    }
    
    return HealthResponse(
        status="healthy" if tesseract_version else "degraded",
        version=VERSION,
        dependencies=dependencies,
    )
