"""Read-aloud support: speech sink interface and playback controller."""

from speech.controller import (
    PlaybackState,
    ReadAloudController,
    SpeechOptions,
    SpeechSink,
)

__all__ = [
    'PlaybackState',
    'ReadAloudController',
    'SpeechOptions',
    'SpeechSink',
]
