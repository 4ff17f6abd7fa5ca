"""Postprocessing module for OCR output.

This module provides:
- TextRepairer (line filtering, known-error substitution, symbol stripping)
- ERROR_MAP, the fixed correction table
"""

from postprocessing.text_repairer import (
    ERROR_MAP,
    TextRepairer,
    apply_corrections,
    filter_lines,
    strip_symbols,
)

__all__ = [
    'ERROR_MAP',
    'TextRepairer',
    'apply_corrections',
    'filter_lines',
    'strip_symbols',
]
