"""Shared fixtures: in-memory images and fake external collaborators."""

import io
import threading
import pytest
from PIL import Image

from ingestion.file_handler import SourceImage
from ocr.progress import STAGE_LOADING_CORE, STAGE_LOADING_LANGUAGE, STAGE_RECOGNIZING
from ocr.tesseract_recognizer import OcrCapability
from preprocessing.normalizer import ImageNormalizer
from speech.controller import SpeechSink


def encode_image(image: Image.Image, fmt: str = 'PNG') -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


class FakeCapability(OcrCapability):
    """OCR capability returning canned text, optionally blocking or failing."""
    
    def __init__(self, text="", error=None, block=None, progress=None):
        self.text = text
        self.error = error
        self.block = block
        self.progress = progress
        self.calls = []
        self.finished = threading.Event()
    
    def recognize(self, image_png, config, on_progress):
        self.calls.append((image_png, config))
        try:
            on_progress(STAGE_LOADING_CORE, 0.0)
            on_progress(STAGE_LOADING_CORE, 1.0)
            on_progress(STAGE_LOADING_LANGUAGE, 1.0)
            for fraction in self.progress or [0.0]:
                on_progress(STAGE_RECOGNIZING, fraction)
            if self.block is not None:
                self.block.wait(5)
            if self.error is not None:
                raise self.error
            on_progress(STAGE_RECOGNIZING, 1.0)
            return self.text
        finally:
            self.finished.set()


class FakeSink(SpeechSink):
    """Speech sink recording calls; playback ends when `finish()` is called."""
    
    def __init__(self):
        self.spoken = []
        self.cancelled = 0
        self._speaking = False
        self._on_end = None
    
    def speak(self, text, options, on_end):
        self.spoken.append((text, options))
        self._speaking = True
        self._on_end = on_end
    
    def cancel(self):
        self.cancelled += 1
        self._speaking = False
    
    def finish(self):
        self._speaking = False
        if self._on_end is not None:
            self._on_end()
    
    @property
    def is_speaking(self):
        return self._speaking


@pytest.fixture
def make_capability():
    return FakeCapability


@pytest.fixture
def fake_sink():
    return FakeSink()


@pytest.fixture
def make_source():
    """Build a SourceImage from a solid-color Pillow image."""
    def _make(size=(8, 6), color=(200, 100, 50), mode='RGB', fmt='PNG', mime_type='image/png'):
        image = Image.new(mode, size, color=color)
        return SourceImage(content=encode_image(image, fmt), mime_type=mime_type, filename=f"test.{fmt.lower()}")
    return _make


@pytest.fixture
def png_bytes():
    return encode_image(Image.new('RGB', (40, 20), color='white'))


@pytest.fixture
def raster(make_source):
    return ImageNormalizer().normalize(make_source(size=(10, 10)))
