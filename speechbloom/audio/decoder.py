"""Audio decoder: container bytes to mono float32 samples."""

import io
import asyncio
import logging
from concurrent.futures import Executor
from typing import Optional

import numpy as np
import soundfile as sf

from ..errors import DecodeError
from ..models.audio import PCMSamples

logger = logging.getLogger(__name__)


class AudioDecoder:
    """Decodes FLAC/WAV/OGG blobs with libsndfile off the event loop thread."""

    def __init__(self, executor: Optional[Executor] = None):
        """Initialize decoder.

        Args:
            executor: Executor to decode in (defaults to the loop's default executor)
        """
        self.executor = executor

    async def decode(self, data: bytes) -> PCMSamples:
        """Decode a container blob, keeping channel 0 and its native sample rate.

        Raises:
            DecodeError: If the blob is empty, malformed or contains no frames
        """
        if not data:
            raise DecodeError("Cannot decode an empty audio unit")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self.decode_bytes, data)

    def decode_bytes(self, data: bytes) -> PCMSamples:
        """Synchronous decode used by decode()."""
        if not data:
            raise DecodeError("Cannot decode an empty audio unit")
        try:
            samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
        except (sf.SoundFileError, RuntimeError, ValueError) as e:
            raise DecodeError(f"Malformed audio unit ({len(data)} bytes): {e}") from e

        if samples.shape[0] == 0:
            raise DecodeError(f"Audio unit of {len(data)} bytes decoded to zero frames")

        mono = np.ascontiguousarray(samples[:, 0])
        logger.debug(f"Decoded {len(data)} bytes -> {len(mono)} samples @ {sample_rate}Hz "
                     f"({samples.shape[1]} channel(s))")
        return PCMSamples(samples=mono, sample_rate=int(sample_rate))
