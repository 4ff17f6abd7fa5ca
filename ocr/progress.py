"""Recognition progress events and status messages."""

import threading
from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Optional, Tuple
from core.logging import log

STAGE_LOADING_CORE = "loading tesseract core"
STAGE_LOADING_LANGUAGE = "loading language pack"
STAGE_RECOGNIZING = "recognizing text"

MESSAGE_COMPLETE = "识别完成"
MESSAGE_EMPTY = "未识别到有效文字"

ProgressCallback = Callable[[str, float], None]


@dataclass(frozen=True)
class ProgressEvent:
    stage: str
    fraction: float
    
    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def describe(event: ProgressEvent) -> str:
    """Human-readable status line for a progress event."""
    if event.stage == STAGE_LOADING_CORE:
        return "加载核心引擎..."
    if event.stage == STAGE_LOADING_LANGUAGE:
        return "加载中文识别模型..."
    if event.stage == STAGE_RECOGNIZING:
        return f"识别中...{round(event.fraction * 100)}%"
    return event.stage


class ProgressTracker:
    """Records progress events and forwards them to an observer.
    
    Within a stage the fraction never decreases; regressing events are
    dropped. Once closed, late events from an abandoned engine call are
    ignored.
    """
    
    def __init__(self, on_progress: Optional[ProgressCallback] = None):
        self._on_progress = on_progress
        self._events: List[ProgressEvent] = []
        self._last: Dict[str, float] = {}
        self._closed = False
        self._lock = threading.Lock()
    
    def __call__(self, stage: str, fraction: float) -> None:
        fraction = max(0.0, min(1.0, float(fraction)))
        with self._lock:
            if self._closed:
                return
            if fraction < self._last.get(stage, 0.0):
                return
            self._last[stage] = fraction
            self._events.append(ProgressEvent(stage=stage, fraction=fraction))
        
        log.debug(f"OCR progress: {stage} {fraction:.2f}")
        if self._on_progress is not None:
            try:
                self._on_progress(stage, fraction)
            except Exception as e:
                # Progress is advisory; a broken observer must not fail recognition
                log.warning(f"Progress observer raised {type(e).__name__}: {str(e)}")
    
    def close(self) -> None:
        with self._lock:
            self._closed = True
    
    @property
    def events(self) -> Tuple[ProgressEvent, ...]:
        with self._lock:
            return tuple(self._events)
