"""Abstract base classes for transcription backends."""

from abc import ABC, abstractmethod
import logging

import numpy as np

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for speech-recognition model backends."""

    def __init__(self, model_name: str, target_sample_rate: int = 16000):
        """Initialize backend with the model it should load."""
        self.model_name = model_name
        self.target_sample_rate = target_sample_rate

    @abstractmethod
    def initialize(self) -> bool:
        """Load model weights and verify they are usable.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def transcribe(self, samples: np.ndarray, sample_rate: int) -> str:
        """Transcribe mono float32 samples and return the raw text.

        Args:
            samples: Mono audio, already at target_sample_rate
            sample_rate: Sample rate of the audio in Hz
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Release backend resources."""
        pass
