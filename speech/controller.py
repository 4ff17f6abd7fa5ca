"""Read-aloud controller.

Drives a speech sink with the cleaned text. The sink itself (browser speech
synthesis, a desktop TTS engine, ...) is an external collaborator.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, Dict, Optional
from core.config import settings
from core.errors import NothingToRead
from core.logging import log


@dataclass(frozen=True)
class SpeechOptions:
    language: str = "zh-CN"
    rate: float = 0.85
    
    @classmethod
    def from_settings(cls) -> "SpeechOptions":
        return cls(language=settings.SPEECH_LANGUAGE, rate=settings.SPEECH_RATE)
    
    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class SpeechSink(ABC):
    """Interface for speech synthesis backends."""
    
    @abstractmethod
    def speak(self, text: str, options: SpeechOptions, on_end: Callable[[], None]) -> None:
        """Start playback; call `on_end` once playback finishes."""
        raise NotImplementedError
    
    @abstractmethod
    def cancel(self) -> None:
        raise NotImplementedError
    
    @property
    @abstractmethod
    def is_speaking(self) -> bool:
        raise NotImplementedError


class PlaybackState(str, Enum):
    IDLE = "idle"
    SPEAKING = "speaking"


class ReadAloudController:
    """Speak/stop state machine around a SpeechSink."""
    
    def __init__(self, sink: SpeechSink, options: Optional[SpeechOptions] = None):
        self.sink = sink
        self.options = options or SpeechOptions.from_settings()
        self.text = ''
        self.state = PlaybackState.IDLE
        # Incremented per utterance so a stale end notification is ignored
        self._utterance = 0
    
    @property
    def can_speak(self) -> bool:
        return bool(self.text) and self.state == PlaybackState.IDLE
    
    def load(self, text: Optional[str]) -> None:
        """Replace the text to read; stops any ongoing playback."""
        self.stop()
        self.text = text or ''
    
    def speak(self) -> None:
        """Read the loaded text aloud from the beginning.
        
        Raises:
            NothingToRead: If no text is loaded
        """
        if not self.text:
            raise NothingToRead("No text available to read aloud")
        
        self.stop()
        self._utterance += 1
        utterance = self._utterance
        
        def on_end() -> None:
            if utterance == self._utterance:
                self.state = PlaybackState.IDLE
                log.info("Playback finished")
        
        log.info(f"Reading {len(self.text)} chars aloud ({self.options.language}, rate {self.options.rate})")
        self.state = PlaybackState.SPEAKING
        self.sink.speak(self.text, self.options, on_end)
    
    def stop(self) -> None:
        """Stop playback if the sink is currently speaking."""
        if self.sink.is_speaking:
            log.info("Stopping playback")
            self.sink.cancel()
        self.state = PlaybackState.IDLE
