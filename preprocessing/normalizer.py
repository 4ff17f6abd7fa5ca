"""Image normalization for OCR input.

Processing steps:
1. Decode the uploaded bytes (JPEG/PNG/GIF/BMP/WebP)
2. Upscale by 1.5x with bilinear resampling (small glyphs read better)
3. Luma grayscale, replicated to R, G and B (alpha untouched)
4. Fixed contrast remap: dark values +30, light values -30
5. Lossless PNG encoding plus a data URI for transport

The remap is a fixed lookup, not histogram based, so large images are
processed in a single vectorized pass.
"""

import io
import math
from dataclasses import dataclass, field
from typing import Tuple
from PIL import Image
import cv2
import numpy as np
from core.errors import DecodeError, EncodeError
from core.logging import log
from core.utils import array_to_image, image_to_array, to_data_uri
from ingestion.file_handler import MIME_ALIASES, SourceImage

# Pillow decoders allowed to touch uploaded bytes, keyed by declared MIME type
PIL_FORMATS = {
    'image/jpeg': 'JPEG',
    'image/png': 'PNG',
    'image/gif': 'GIF',
    'image/bmp': 'BMP',
    'image/webp': 'WEBP',
}
ACCEPTED_FORMATS = tuple(PIL_FORMATS.values())

UPSCALE_FACTOR = 1.5
LUMA_WEIGHTS = (0.299, 0.587, 0.114)
CONTRAST_PIVOT = 128
CONTRAST_DELTA = 30
RASTER_MIME_TYPE = "image/png"


@dataclass(frozen=True, eq=False)
class NormalizedRaster:
    """Grayscale, contrast-remapped raster ready for the OCR engine.

    `pixels` is read-only; R == G == B for every pixel.
    """
    width: int
    height: int
    pixels: np.ndarray = field(repr=False)
    png_bytes: bytes = field(repr=False)
    source_size: Tuple[int, int] = (0, 0)

    @property
    def has_alpha(self) -> bool:
        return self.pixels.shape[2] == 4

    @property
    def data_uri(self) -> str:
        return to_data_uri(self.png_bytes, RASTER_MIME_TYPE)


def target_size(width: int, height: int, scale: float = UPSCALE_FACTOR) -> Tuple[int, int]:
    """Upscaled dimensions: floor(width * scale) x floor(height * scale)."""
    return math.floor(width * scale), math.floor(height * scale)


def to_grayscale(pixels: np.ndarray) -> np.ndarray:
    """Replace R, G and B with rounded luma; alpha (if any) is copied as-is.

    Args:
        pixels: uint8 array of shape (H, W, 3) or (H, W, 4)

    Returns:
        np.ndarray: New uint8 array of the same shape
    """
    rgb = pixels[..., :3].astype(np.float64)
    luma = (LUMA_WEIGHTS[0] * rgb[..., 0]
            + LUMA_WEIGHTS[1] * rgb[..., 1]
            + LUMA_WEIGHTS[2] * rgb[..., 2])
    # Round half up, like Math.round
    gray = np.clip(np.floor(luma + 0.5), 0, 255).astype(np.uint8)

    out = pixels.copy()
    out[..., 0] = gray
    out[..., 1] = gray
    out[..., 2] = gray
    return out


def remap_contrast(values: np.ndarray) -> np.ndarray:
    """Fixed contrast remap: v < 128 -> v + 30, otherwise v - 30, clamped to [0, 255]."""
    v = np.asarray(values).astype(np.int16)
    remapped = np.where(v < CONTRAST_PIVOT, v + CONTRAST_DELTA, v - CONTRAST_DELTA)
    return np.clip(remapped, 0, 255).astype(np.uint8)


class ImageNormalizer:
    """Turns a SourceImage into a NormalizedRaster."""

    def __init__(self, scale: float = UPSCALE_FACTOR):
        self.scale = scale

    def decode(self, source: SourceImage) -> np.ndarray:
        """Decode image bytes into an RGB or RGBA pixel array.

        Raises:
            DecodeError: If the bytes are corrupt, the container is unsupported,
                or the container does not match the declared MIME type
        """
        expected_format = PIL_FORMATS.get(MIME_ALIASES.get(source.mime_type, source.mime_type))
        try:
            with Image.open(io.BytesIO(source.content), formats=ACCEPTED_FORMATS) as image:
                if image.format != expected_format:
                    raise ValueError(
                        f"{image.format} content does not match declared type {source.mime_type}"
                    )
                image.load()
                has_alpha = 'A' in image.getbands() or (
                    image.mode == 'P' and 'transparency' in image.info
                )
                image = image.convert('RGBA' if has_alpha else 'RGB')
                return image_to_array(image)
        except Exception as e:
            log.error(f"Failed to decode image {source.filename!r}: {str(e)}")
            raise DecodeError(
                f"Failed to decode image: {str(e)}",
                detail={"mime_type": source.mime_type, "filename": source.filename},
            ) from e

    def upscale(self, pixels: np.ndarray) -> np.ndarray:
        """Bilinear resize to floor(W * scale) x floor(H * scale)."""
        height, width = pixels.shape[:2]
        new_width, new_height = target_size(width, height, self.scale)
        log.info(f"Resizing from {width}x{height} to {new_width}x{new_height}")
        return cv2.resize(pixels, (new_width, new_height), interpolation=cv2.INTER_LINEAR)

    def encode(self, pixels: np.ndarray) -> bytes:
        """Lossless PNG encoding of the normalized pixels.

        Raises:
            EncodeError: If Pillow cannot produce the PNG
        """
        try:
            buffer = io.BytesIO()
            array_to_image(pixels).save(buffer, format='PNG', compress_level=6)
            return buffer.getvalue()
        except (OSError, ValueError, TypeError) as e:
            log.error(f"Failed to encode normalized raster: {str(e)}")
            raise EncodeError(f"Failed to encode normalized image: {str(e)}") from e

    def normalize(self, source: SourceImage) -> NormalizedRaster:
        """Run the full normalization pipeline.

        Args:
            source: Validated source image (not modified)

        Returns:
            NormalizedRaster: Upscaled, grayscale, contrast-remapped raster

        Raises:
            DecodeError: If the image cannot be decoded
            EncodeError: If the output raster cannot be produced
        """
        log.info(f"Normalizing image {source.filename!r} ({source.mime_type})")

        pixels = self.decode(source)
        source_height, source_width = pixels.shape[:2]

        pixels = self.upscale(pixels)
        pixels = to_grayscale(pixels)
        # Second, independent pass over the grayscale channels
        pixels[..., :3] = remap_contrast(pixels[..., :3])

        png_bytes = self.encode(pixels)
        pixels.setflags(write=False)

        height, width = pixels.shape[:2]
        log.info(f"Normalized raster: {width}x{height}, PNG {len(png_bytes) / 1024:.1f} KB")

        return NormalizedRaster(
            width=width,
            height=height,
            pixels=pixels,
            png_bytes=png_bytes,
            source_size=(source_width, source_height),
        )
