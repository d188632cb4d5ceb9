"""Transcription module for SpeechBloom."""

from .base import AbstractTranscriptionBackend
from .engine import TranscriptionEngine, get_shared_engine
from .publisher import ResultDispatcher, ResultCallback, RESULT_TOPIC, ERROR_TOPIC
from .aggregator import TranscriptHistory

__all__ = [
    "AbstractTranscriptionBackend",
    "TranscriptionEngine",
    "get_shared_engine",
    "ResultDispatcher",
    "ResultCallback",
    "RESULT_TOPIC",
    "ERROR_TOPIC",
    "TranscriptHistory",
]
