"""Whisper backend built on the Hugging Face transformers ASR pipeline."""

import logging
from typing import Optional, Union

import numpy as np
from transformers import pipeline

from .base import AbstractTranscriptionBackend

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "openai/whisper-tiny.en"


class WhisperBackend(AbstractTranscriptionBackend):
    """Runs a pretrained Whisper checkpoint through transformers.pipeline."""

    def __init__(self,
                 model_name: str = DEFAULT_MODEL_NAME,
                 device: Optional[Union[str, int]] = "cpu",
                 target_sample_rate: int = 16000):
        """Initialize Whisper backend.

        Args:
            model_name: Hugging Face model id (tiny.en keeps latency low)
            device: Torch device for the pipeline ("cpu", "cuda:0", -1, ...)
            target_sample_rate: Sample rate the model expects
        """
        super().__init__(model_name, target_sample_rate)
        self.device = device
        self.asr_pipeline = None

    def initialize(self) -> bool:
        """Download (if needed) and load the model."""
        logger.info(f"Loading Whisper model '{self.model_name}' on {self.device}...")
        self.asr_pipeline = pipeline(
            "automatic-speech-recognition",
            model=self.model_name,
            device=self.device,
        )
        logger.info(f"Model '{self.model_name}' loaded")
        return True

    def transcribe(self, samples: np.ndarray, sample_rate: int) -> str:
        """Transcribe audio with the loaded pipeline."""
        if self.asr_pipeline is None:
            raise RuntimeError(f"Whisper model '{self.model_name}' is not loaded")
        if len(samples) == 0:
            return ""

        result = self.asr_pipeline({"raw": samples, "sampling_rate": sample_rate})
        if isinstance(result, dict) and "text" in result:
            return result["text"]

        logger.warning(f"Unexpected ASR result structure: {type(result)}")
        return ""

    def cleanup(self) -> None:
        """Drop the pipeline reference."""
        self.asr_pipeline = None
