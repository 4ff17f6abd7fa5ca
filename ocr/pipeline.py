"""Recognition pipeline - main orchestrator.

This module composes the three stages, strictly in order:
1. ImageNormalizer (decode, upscale, grayscale, contrast remap, encode)
2. OcrInvoker (engine call raced against the timeout)
3. TextRepairer (line filter, corrections, symbol stripping)

Failures from stages 1 and 2 propagate unchanged; stage 3 never fails.
Nothing is cached between invocations.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple
from core.logging import log
from ingestion.file_handler import SourceImage
from ocr.invoker import OcrInvoker
from ocr.progress import ProgressCallback, ProgressEvent
from ocr.tesseract_recognizer import TesseractRecognizer
from postprocessing.text_repairer import TextRepairer
from preprocessing.normalizer import ImageNormalizer


@dataclass(frozen=True)
class PipelineOutcome:
    """Cleaned text plus diagnostics from a single run."""
    text: str
    raw_text: str
    width: int
    height: int
    source_size: Tuple[int, int]
    progress: Tuple[ProgressEvent, ...] = field(default_factory=tuple)
    elapsed_ms: float = 0.0
    
    @property
    def has_text(self) -> bool:
        return bool(self.text)


class RecognitionPipeline:
    """Image bytes in, cleaned text out."""
    
    def __init__(self,
                 normalizer: Optional[ImageNormalizer] = None,
                 invoker: Optional[OcrInvoker] = None,
                 repairer: Optional[TextRepairer] = None):
        self.normalizer = normalizer or ImageNormalizer()
        self.invoker = invoker or OcrInvoker(TesseractRecognizer())
        self.repairer = repairer or TextRepairer()
    
    def run_detailed(self, image: SourceImage,
                     on_progress: Optional[ProgressCallback] = None) -> PipelineOutcome:
        """Run all stages and keep intermediate diagnostics.
        
        Args:
            image: Validated source image
            on_progress: Optional observer receiving (stage, fraction)
            
        Returns:
            PipelineOutcome: Cleaned text, raw OCR text, raster size, progress
            
        Raises:
            DecodeError, EncodeError: From normalization
            RecognitionTimeout, RecognitionFailure: From OCR
        """
        log.info(f"Starting recognition pipeline for {image.filename!r}")
        
        raster = self.normalizer.normalize(image)
        result = self.invoker.recognize(raster, on_progress)
        text = self.repairer.repair(result.text)
        
        if text:
            log.info(f"Recognition complete: {len(text)} chars")
        else:
            log.warning("Recognition complete but no legible text remained")
        
        return PipelineOutcome(
            text=text,
            raw_text=result.text,
            width=raster.width,
            height=raster.height,
            source_size=raster.source_size,
            progress=result.progress,
            elapsed_ms=result.elapsed_ms,
        )
    
    def run(self, image: SourceImage,
            on_progress: Optional[ProgressCallback] = None) -> str:
        """Recognize and clean the text in an image."""
        return self.run_detailed(image, on_progress).text
