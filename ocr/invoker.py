"""OCR invocation with a hard timeout.

The engine call runs on a worker thread and the caller waits on its future
with a bounded timeout: whichever settles first decides the outcome. On
timeout the worker is abandoned and its eventual result and progress events
are discarded. Engines that can stop their own work (the Tesseract adapter
kills its process) should be given the same budget.
"""

import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Optional, Tuple
from core.config import settings
from core.errors import RecognitionFailure, RecognitionTimeout
from core.logging import log
from ocr.progress import ProgressCallback, ProgressEvent, ProgressTracker
from ocr.tesseract_recognizer import DEFAULT_ENGINE_CONFIG, OcrCapability, OcrEngineConfig
from preprocessing.normalizer import NormalizedRaster


@dataclass(frozen=True)
class RecognitionResult:
    text: str
    progress: Tuple[ProgressEvent, ...] = field(default_factory=tuple)
    elapsed_ms: float = 0.0


class OcrInvoker:
    """Submits a normalized raster to an OCR capability, bounded by a timeout."""
    
    def __init__(self,
                 capability: OcrCapability,
                 timeout_ms: Optional[int] = None,
                 config: OcrEngineConfig = DEFAULT_ENGINE_CONFIG):
        """Initialize invoker.
        
        Args:
            capability: OCR engine to call
            timeout_ms: Upper bound per call (default settings.OCR_TIMEOUT_MS)
            config: Engine configuration sent with every request
        """
        self.capability = capability
        self.timeout_ms = timeout_ms if timeout_ms is not None else settings.OCR_TIMEOUT_MS
        self.config = config
    
    def recognize(self, raster: NormalizedRaster,
                  on_progress: Optional[ProgressCallback] = None) -> RecognitionResult:
        """Recognize text in a raster.
        
        Issues exactly one engine request; never retries.
        
        Args:
            raster: Normalized raster (its PNG form is sent to the engine)
            on_progress: Optional observer receiving (stage, fraction)
            
        Returns:
            RecognitionResult: Raw text plus the progress events received
            
        Raises:
            RecognitionTimeout: If no result arrives within timeout_ms
            RecognitionFailure: If the engine raises
        """
        tracker = ProgressTracker(on_progress)
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ocr-worker")
        started = time.monotonic()
        
        log.info(f"Submitting {raster.width}x{raster.height} raster to OCR (timeout {self.timeout_ms} ms)")
        future = executor.submit(self.capability.recognize, raster.png_bytes, self.config, tracker)
        try:
            done, _ = wait([future], timeout=self.timeout_ms / 1000.0)
            if future not in done:
                log.error(f"OCR timed out after {self.timeout_ms} ms; abandoning engine call")
                raise RecognitionTimeout(self.timeout_ms)
            text = future.result()
        except RecognitionTimeout:
            raise
        except RecognitionFailure as e:
            log.error(f"OCR failed: {e.message}")
            raise
        except Exception as e:
            log.error(f"OCR engine raised {type(e).__name__}: {str(e)}")
            raise RecognitionFailure(
                f"OCR engine error: {str(e)}",
                detail={"error_type": type(e).__name__},
            ) from e
        finally:
            tracker.close()
            executor.shutdown(wait=False)
        
        elapsed_ms = (time.monotonic() - started) * 1000.0
        text = text or ''
        log.info(f"OCR finished in {elapsed_ms:.0f} ms ({len(text)} chars)")
        return RecognitionResult(text=text, progress=tracker.events, elapsed_ms=elapsed_ms)
