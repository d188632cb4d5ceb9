"""Audio capture and processing module."""

from .buffer import ChunkBuffer
from .capture import MicrophoneCapture
from .decoder import AudioDecoder
from .encoder import AudioEncoder
from .resample import resample, resampled_length

__all__ = [
    'ChunkBuffer',
    'MicrophoneCapture',
    'AudioDecoder',
    'AudioEncoder',
    'resample',
    'resampled_length',
]
