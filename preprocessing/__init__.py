"""Image preprocessing for OCR input.

This module provides:
- ImageNormalizer (decode, 1.5x upscale, luma grayscale, contrast remap, PNG encode)
- NormalizedRaster, the immutable normalizer output
"""

from preprocessing.normalizer import (
    ImageNormalizer,
    NormalizedRaster,
    remap_contrast,
    target_size,
    to_grayscale,
)

__all__ = [
    'ImageNormalizer',
    'NormalizedRaster',
    'remap_contrast',
    'target_size',
    'to_grayscale',
]
