"""Data models for the SpeechBloom application."""

from .audio import AudioChunk, FlushUnit, PCMSamples
from .transcription import TranscriptResult
from .session import (
    DEFAULT_CHUNK_DURATION_MS,
    SessionState,
    ListenOptions,
    IdleState,
    CapturingState,
    StoppingState,
)

__all__ = [
    "AudioChunk",
    "FlushUnit",
    "PCMSamples",
    "TranscriptResult",
    "DEFAULT_CHUNK_DURATION_MS",
    "SessionState",
    "ListenOptions",
    "IdleState",
    "CapturingState",
    "StoppingState",
]
