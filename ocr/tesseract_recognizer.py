"""Tesseract recognition engine (isolated module).

This module wraps the `tesseract` binary through pytesseract and exposes it
through the OcrCapability interface used by the invoker.
"""

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional
from PIL import Image
import pytesseract
from pytesseract import TesseractError, TesseractNotFoundError
from core.config import settings
from core.errors import RecognitionFailure
from core.logging import log
from ocr.progress import (
    STAGE_LOADING_CORE,
    STAGE_LOADING_LANGUAGE,
    STAGE_RECOGNIZING,
    ProgressCallback,
)


class EngineMode(IntEnum):
    """Tesseract OCR engine modes (--oem)."""
    LEGACY_ONLY = 0
    LSTM_ONLY = 1
    LEGACY_LSTM = 2
    DEFAULT = 3


class PageSegMode(IntEnum):
    """Tesseract page segmentation modes (--psm)."""
    OSD_ONLY = 0
    AUTO_OSD = 1
    AUTO_ONLY = 2
    AUTO = 3
    SINGLE_COLUMN = 4
    SINGLE_BLOCK = 6
    SINGLE_LINE = 7
    SINGLE_WORD = 8
    SPARSE_TEXT = 11


@dataclass(frozen=True)
class OcrEngineConfig:
    """Fixed recognition configuration sent with every request."""
    languages: str = "chi_sim+eng"
    engine_mode: EngineMode = EngineMode.LSTM_ONLY
    page_seg_mode: PageSegMode = PageSegMode.AUTO
    use_system_dictionary: bool = True
    
    @property
    def language_codes(self):
        return [code for code in self.languages.split('+') if code]
    
    def to_tesseract_args(self) -> str:
        """Command-line flags for pytesseract's `config` argument."""
        dawg = 1 if self.use_system_dictionary else 0
        return f"--oem {int(self.engine_mode)} --psm {int(self.page_seg_mode)} -c load_system_dawg={dawg}"


DEFAULT_ENGINE_CONFIG = OcrEngineConfig()


def configure_tesseract_cmd(tesseract_cmd: Optional[str] = None) -> str:
    """Point pytesseract at the tesseract binary for the whole process.

    Args:
        tesseract_cmd: Path to the binary. If None, uses settings.TESSERACT_CMD,
                       falling back to pytesseract's PATH lookup.

    Returns:
        str: The command pytesseract will run
    """
    tesseract_cmd = tesseract_cmd or settings.TESSERACT_CMD
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
    log.info(f"Tesseract command: {pytesseract.pytesseract.tesseract_cmd}")
    return pytesseract.pytesseract.tesseract_cmd


class OcrCapability(ABC):
    """Interface for OCR engines.
    
    Engines return the literal recognized text and raise on failure. They may
    report progress through the callback; no cancellation is assumed.
    """
    
    @abstractmethod
    def recognize(self, image_png: bytes, config: OcrEngineConfig,
                  on_progress: ProgressCallback) -> str:
        raise NotImplementedError


class TesseractRecognizer(OcrCapability):
    """Tesseract OCR via pytesseract.
    
    pytesseract offers no streaming progress, so the coarse stages are
    reported around each step: binary check, language data check, and the
    recognition call itself.
    """
    
    def __init__(self, timeout_s: Optional[float] = None):
        """Initialize Tesseract recognizer.

        The binary path is process-wide pytesseract state; it is set once at
        startup by configure_tesseract_cmd(), not per recognizer.

        Args:
            timeout_s: Seconds before the tesseract process is killed.
                       If None, uses settings.OCR_TIMEOUT_MS.
        """
        self.timeout_s = timeout_s if timeout_s is not None else settings.OCR_TIMEOUT_MS / 1000.0
    
    def version(self) -> Optional[str]:
        """Installed Tesseract version, or None if the binary is missing."""
        try:
            return str(pytesseract.get_tesseract_version())
        except TesseractNotFoundError:
            return None
    
    def is_available(self) -> bool:
        return self.version() is not None
    
    def recognize(self, image_png: bytes, config: OcrEngineConfig,
                  on_progress: ProgressCallback) -> str:
        """Recognize text from an encoded raster.
        
        Args:
            image_png: PNG-encoded normalized raster
            config: Engine configuration
            on_progress: Progress observer (stage, fraction)
            
        Returns:
            str: Raw recognized text
            
        Raises:
            RecognitionFailure: If the binary, language data or recognition fails
        """
        on_progress(STAGE_LOADING_CORE, 0.0)
        version = self.version()
        if version is None:
            raise RecognitionFailure(
                "tesseract binary not found on PATH",
                detail={"expected_command": pytesseract.pytesseract.tesseract_cmd},
            )
        log.info(f"Tesseract {version} available")
        on_progress(STAGE_LOADING_CORE, 1.0)
        
        on_progress(STAGE_LOADING_LANGUAGE, 0.0)
        try:
            installed = set(pytesseract.get_languages(config=''))
        except TesseractError as e:
            raise RecognitionFailure(
                f"Failed to list Tesseract languages: {e.message}",
                detail={"status": e.status},
            ) from e
        missing = [code for code in config.language_codes if code not in installed]
        if missing:
            raise RecognitionFailure(
                f"Tesseract language data not installed: {', '.join(missing)}",
                detail={"missing": missing, "installed": sorted(installed)},
            )
        on_progress(STAGE_LOADING_LANGUAGE, 1.0)
        
        on_progress(STAGE_RECOGNIZING, 0.0)
        args = config.to_tesseract_args()
        log.info(f"Running Tesseract (lang={config.languages}, config='{args}')")
        try:
            with Image.open(io.BytesIO(image_png)) as image:
                text = pytesseract.image_to_string(
                    image, lang=config.languages, config=args, timeout=self.timeout_s
                )
        except TesseractError as e:
            raise RecognitionFailure(
                f"Tesseract failed: {e.message}",
                detail={"status": e.status},
            ) from e
        except RuntimeError as e:
            # pytesseract kills the process and raises "Tesseract process timeout"
            log.error(f"Tesseract killed after {self.timeout_s:.1f} s: {str(e)}")
            raise RecognitionFailure(
                f"Tesseract failed: {str(e)}",
                detail={"timeout_s": self.timeout_s},
            ) from e
        on_progress(STAGE_RECOGNIZING, 1.0)
        
        return text
