"""Audio encoder: turns captured frames into chunks and flush units into containers."""

import io
import time
import logging
import threading
from typing import Callable, Dict

import numpy as np
import soundfile as sf

from ..errors import DecodeError
from ..models.audio import AudioChunk, FlushUnit

logger = logging.getLogger(__name__)

# libsndfile subtype used for each supported container
CONTAINER_SUBTYPES: Dict[str, str] = {
    "FLAC": "PCM_16",
    "WAV": "PCM_16",
    "OGG": "VORBIS",
}


class AudioEncoder:
    """Collects 16-bit PCM frames from the capture thread and emits AudioChunks.

    Fragments are handed to the sink when they reach fragment_ms of audio,
    when request_data() is called, and once more on stop(). A flush joins the
    fragments and seal() packages them as a self-contained container that the
    decoder can read on its own.

    The sink is called with the encoder lock held, so it receives chunks in
    sequence order and must not call back into the encoder.
    """

    sample_width = 2  # 16-bit audio

    def __init__(
        self,
        sink: Callable[[AudioChunk], None],
        sample_rate: int,
        channels: int = 1,
        fragment_ms: int = 250,
        container_format: str = "FLAC",
    ):
        container_format = container_format.upper()
        if container_format not in CONTAINER_SUBTYPES:
            raise ValueError(f"Unsupported container format: {container_format}. "
                             f"Valid options: {', '.join(CONTAINER_SUBTYPES)}")
        self.sink = sink
        self.sample_rate = sample_rate
        self.channels = channels
        self.container_format = container_format

        self.bytes_per_second = sample_rate * channels * self.sample_width
        frame_bytes = channels * self.sample_width
        fragment_bytes = int(self.bytes_per_second * fragment_ms / 1000)
        self.fragment_bytes = max(frame_bytes, fragment_bytes - fragment_bytes % frame_bytes)

        self._pending = bytearray()
        self._sequence = 0
        self._stopped = False
        self.lock = threading.Lock()

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    def write(self, frames: bytes) -> None:
        """Append captured frames; emits a chunk once a fragment is full."""
        with self.lock:
            if self._stopped:
                return
            self._pending.extend(frames)
            if len(self._pending) >= self.fragment_bytes:
                self._emit_pending()

    def request_data(self) -> None:
        """Emit whatever is pending as a chunk, even if the fragment is short."""
        with self.lock:
            self._emit_pending()

    def stop(self) -> None:
        """Emit remaining data and refuse further writes."""
        with self.lock:
            self._emit_pending()
            self._stopped = True
        logger.debug(f"Encoder stopped after {self._sequence} chunks")

    def _emit_pending(self) -> None:
        # Caller holds self.lock, so chunks reach the sink in sequence order
        if not self._pending:
            return
        self.sink(self._take_pending())

    def _take_pending(self) -> AudioChunk:
        chunk = AudioChunk(
            data=bytes(self._pending),
            sequence_number=self._sequence,
            timestamp=time.time(),
        )
        self._sequence += 1
        self._pending.clear()
        return chunk

    def seal(self, unit: FlushUnit) -> bytes:
        """Package a flush unit's PCM payload as a container blob.

        Raises:
            DecodeError: If libsndfile cannot write the payload
        """
        frame_bytes = unit.channels * self.sample_width
        usable = len(unit.payload) - len(unit.payload) % frame_bytes
        pcm = np.frombuffer(unit.payload[:usable], dtype=np.int16)
        if unit.channels > 1:
            pcm = pcm.reshape(-1, unit.channels)

        buf = io.BytesIO()
        try:
            sf.write(
                buf,
                pcm,
                unit.sample_rate,
                format=self.container_format,
                subtype=CONTAINER_SUBTYPES[self.container_format],
            )
        except (sf.SoundFileError, RuntimeError, ValueError) as e:
            raise DecodeError(f"Could not package flush #{unit.flush_index}: {e}") from e
        blob = buf.getvalue()
        logger.debug(f"Sealed flush #{unit.flush_index}: {unit.size} PCM bytes -> "
                     f"{len(blob)} {self.container_format} bytes")
        return blob
