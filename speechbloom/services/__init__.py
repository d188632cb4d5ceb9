"""Service layer for SpeechBloom."""

from .session_controller import SessionController
from .transcription_service import SpeechTranscriber

__all__ = [
    'SessionController',
    'SpeechTranscriber',
]
