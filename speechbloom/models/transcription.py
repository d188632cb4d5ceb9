"""Transcription-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class TranscriptResult:
    """Text produced by one flush, with its finality flag."""
    text: str
    is_final: bool
    flush_index: Optional[int] = None
    session_id: Optional[str] = None
    processing_time: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_interim(self) -> bool:
        return not self.is_final
