"""OCR module.

This module provides:
- Tesseract recognition engine (isolated)
- OcrInvoker, the timeout-bounded engine call
- Progress events and status messages
- RecognitionPipeline orchestrator
"""

from ocr.invoker import OcrInvoker, RecognitionResult
from ocr.pipeline import PipelineOutcome, RecognitionPipeline
from ocr.progress import ProgressEvent, ProgressTracker, describe
from ocr.tesseract_recognizer import (
    DEFAULT_ENGINE_CONFIG,
    EngineMode,
    OcrCapability,
    OcrEngineConfig,
    PageSegMode,
    TesseractRecognizer,
    configure_tesseract_cmd,
)

__all__ = [
    'DEFAULT_ENGINE_CONFIG',
    'EngineMode',
    'OcrCapability',
    'OcrEngineConfig',
    'OcrInvoker',
    'PageSegMode',
    'PipelineOutcome',
    'ProgressEvent',
    'ProgressTracker',
    'RecognitionPipeline',
    'RecognitionResult',
    'TesseractRecognizer',
    'configure_tesseract_cmd',
    'describe',
]
