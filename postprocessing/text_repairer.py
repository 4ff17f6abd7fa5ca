"""Text repair for raw OCR output.

Three passes, always in this order:
1. Line filtering: lines with 5 or fewer legible characters are dropped
2. Known-error substitution from a fixed correction table
3. Symbol stripping and whitespace collapsing

Line filtering counts characters before any symbol is stripped.
"""

import re
from types import MappingProxyType
from typing import Mapping, Optional
from core.logging import log

# Garbled substring -> correction, applied in declaration order
ERROR_MAP: Mapping[str, str] = MappingProxyType({
    "实财预贵": "实时预览",
    "渡染": "渲染",
    "僳改": "修改",
    "完葛": "完善",
    "一销": "一键",
    "部罩": "部署",
    "代玛": "代码",
    "清程": "流程",
    "财看": "查看",
})

MIN_VALID_CHARS_EXCLUSIVE = 5

# CJK ideographs, ASCII letters, digits, common CJK/Latin punctuation
VALID_CHAR_PATTERN = re.compile(r'[\u4e00-\u9fa5a-zA-Z0-9，。；！？："\'（）【】、]')
DENYLIST_PATTERN = re.compile(r'[|@#$%^&*()_+\-=\[\]{};:"<>?/\\~`]')
WHITESPACE_PATTERN = re.compile(r'\s+')


def count_valid_chars(line: str) -> int:
    return len(VALID_CHAR_PATTERN.findall(line))


def filter_lines(text: str, min_exclusive: int = MIN_VALID_CHARS_EXCLUSIVE) -> str:
    """Keep lines with more than `min_exclusive` legible characters, joined by newlines."""
    kept = [line for line in text.split('\n') if count_valid_chars(line) > min_exclusive]
    return '\n'.join(kept)


def apply_corrections(text: str, error_map: Mapping[str, str] = ERROR_MAP) -> str:
    """Single left-to-right pass over the table; each entry replaces globally.

    A later entry can match text produced by an earlier one, so repeated
    application is not guaranteed to be idempotent.
    """
    for garbled, corrected in error_map.items():
        text = text.replace(garbled, corrected)
    return text


def strip_symbols(text: str) -> str:
    """Remove denylisted symbols, collapse whitespace runs, trim."""
    text = DENYLIST_PATTERN.sub('', text)
    return WHITESPACE_PATTERN.sub(' ', text).strip()


class TextRepairer:
    """Cleans raw OCR text into speakable text.
    
    The correction table is passed in explicitly and never mutated.
    """
    
    def __init__(self, error_map: Optional[Mapping[str, str]] = None):
        self.error_map = MappingProxyType(dict(error_map)) if error_map is not None else ERROR_MAP
    
    def repair(self, raw_text: Optional[str]) -> str:
        """Repair raw OCR text.
        
        Args:
            raw_text: Text as returned by the OCR engine (None allowed)
            
        Returns:
            str: Cleaned text; empty string when nothing legible remains
        """
        if not raw_text:
            return ''
        
        filtered = filter_lines(raw_text)
        corrected = apply_corrections(filtered, self.error_map)
        cleaned = strip_symbols(corrected)
        
        log.info(f"Text repair: {len(raw_text)} raw chars -> {len(cleaned)} cleaned chars")
        return cleaned
