"""Transcription engine that owns the loaded speech-recognition model."""

import time
import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from .base import AbstractTranscriptionBackend
from ..errors import EngineNotReadyError, InferenceError, ModelLoadError
from ..models.audio import PCMSamples

logger = logging.getLogger(__name__)


class TranscriptionEngine:
    """Loads a backend once and runs inference off the event loop thread.

    The engine holds no per-session state; every flush of every session shares
    the same model. Inference runs on a single worker thread, so calls into the
    model never overlap.
    """

    def __init__(self,
                 backend: AbstractTranscriptionBackend,
                 target_sample_rate: int = 16000,
                 executor: Optional[ThreadPoolExecutor] = None):
        """Initialize transcription engine.

        Args:
            backend: Model backend to load and call
            target_sample_rate: Sample rate the model requires (mono)
            executor: Executor to run loading and inference in
        """
        self.backend = backend
        self.target_sample_rate = target_sample_rate
        self.executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="speechbloom-engine")
        self.load_lock = threading.Lock()
        self._ready = False

        self.stats = {
            "load_count": 0,
            "total_transcriptions": 0,
            "failed_transcriptions": 0,
            "avg_processing_time": 0.0,
            "ready_since": None,
        }

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def initialize(self) -> bool:
        """Load the model. Concurrent and repeated calls load it only once.

        Raises:
            ModelLoadError: If the backing model cannot be fetched or instantiated
        """
        if self._ready:
            return True
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self.executor, self._load)
        return True

    def _load(self) -> None:
        with self.load_lock:
            if self._ready:
                return
            name = self.backend.__class__.__name__
            logger.info(f"Initializing {name} ({self.backend.model_name})...")
            try:
                loaded = self.backend.initialize()
            except Exception as e:
                logger.error(f"{name} initialization error: {e}")
                raise ModelLoadError(f"Failed to load model '{self.backend.model_name}': {e}") from e
            if not loaded:
                raise ModelLoadError(f"{name} failed to initialize '{self.backend.model_name}'")

            self.stats["load_count"] += 1
            self.stats["ready_since"] = datetime.now()
            self._ready = True
            logger.info(f"{name} initialized successfully")

    async def transcribe(self, samples: PCMSamples) -> str:
        """Transcribe mono samples that are already at the target rate.

        Raises:
            EngineNotReadyError: If initialize() has not completed
            InferenceError: If the samples are at the wrong rate or the model fails
        """
        if not self._ready:
            raise EngineNotReadyError("Transcription engine is not initialized")
        if samples.sample_rate != self.target_sample_rate:
            raise InferenceError(f"Expected {self.target_sample_rate}Hz audio, "
                                 f"got {samples.sample_rate}Hz")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self._transcribe_sync, samples)

    def _transcribe_sync(self, samples: PCMSamples) -> str:
        start_time = time.time()
        try:
            text = self.backend.transcribe(samples.samples, samples.sample_rate)
        except Exception as e:
            self.stats["failed_transcriptions"] += 1
            logger.error(f"Transcription failed in {self.backend.__class__.__name__}: {e}")
            raise InferenceError(f"Transcription failed: {e}") from e

        processing_time = time.time() - start_time
        self.stats["total_transcriptions"] += 1
        total = self.stats["total_transcriptions"]
        current_avg = self.stats["avg_processing_time"]
        self.stats["avg_processing_time"] = (current_avg * (total - 1) + processing_time) / total

        logger.debug(f"Transcribed {samples.duration_seconds:.2f}s of audio in "
                     f"{processing_time:.3f}s: '{(text or '')[:50]}'")
        return text or ""

    def get_engine_stats(self) -> Dict[str, Any]:
        """Get overall engine statistics."""
        stats = self.stats.copy()
        stats["ready"] = self._ready
        stats["model_name"] = self.backend.model_name
        return stats

    def cleanup(self) -> None:
        """Release the model and the worker thread."""
        logger.info("Shutting down transcription engine...")
        self.executor.shutdown(wait=True)
        self.backend.cleanup()
        self._ready = False


_shared_engines: Dict[Tuple[str, str, int], TranscriptionEngine] = {}
_shared_lock = threading.Lock()


def get_shared_engine(model_name: Optional[str] = None,
                      device: str = "cpu",
                      target_sample_rate: int = 16000) -> TranscriptionEngine:
    """Return the process-wide engine for a model, creating it at most once."""
    from .whisper_backend import DEFAULT_MODEL_NAME, WhisperBackend

    model_name = model_name or DEFAULT_MODEL_NAME
    key = (model_name, str(device), target_sample_rate)
    with _shared_lock:
        engine = _shared_engines.get(key)
        if engine is None:
            engine = TranscriptionEngine(
                WhisperBackend(model_name=model_name, device=device,
                               target_sample_rate=target_sample_rate),
                target_sample_rate=target_sample_rate,
            )
            _shared_engines[key] = engine
            logger.debug(f"Created shared engine for {model_name} on {device}")
        return engine
