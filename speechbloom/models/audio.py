"""Audio-related data models."""

from dataclasses import dataclass

import numpy as np


@dataclass
class AudioChunk:
    """A fragment emitted by the encoder, in capture order."""
    data: bytes
    sequence_number: int
    timestamp: float  # Time when the fragment was emitted


@dataclass
class FlushUnit:
    """All chunks collected since the previous flush, joined in order."""
    payload: bytes
    flush_index: int
    is_final: bool
    sample_rate: int
    channels: int = 1
    chunk_count: int = 0

    @property
    def size(self) -> int:
        return len(self.payload)


@dataclass
class PCMSamples:
    """Mono float32 samples plus the rate they were recorded or resampled at."""
    samples: np.ndarray
    sample_rate: int

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / self.sample_rate
