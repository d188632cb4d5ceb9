"""Chunk buffer that collects encoder fragments between flush points."""

import logging
import threading
from typing import List

from ..models.audio import AudioChunk

logger = logging.getLogger(__name__)


class ChunkBuffer:
    """Thread-safe, ordered buffer of AudioChunks with an atomic drain.

    The capture thread pushes while the event loop drains; every pushed chunk
    is returned by exactly one drain_all() call.
    """

    def __init__(self):
        self._chunks: List[AudioChunk] = []
        self._total_bytes = 0
        self.lock = threading.Lock()

    def push(self, chunk: AudioChunk) -> None:
        """Append a chunk. Empty chunks are ignored."""
        if not chunk.data:
            return
        with self.lock:
            self._chunks.append(chunk)
            self._total_bytes += len(chunk.data)

    def drain_all(self) -> List[AudioChunk]:
        """Return every buffered chunk in push order and empty the buffer."""
        with self.lock:
            drained = self._chunks
            self._chunks = []
            self._total_bytes = 0
        if drained:
            logger.debug(f"Drained {len(drained)} chunks "
                         f"(seq {drained[0].sequence_number}-{drained[-1].sequence_number})")
        return drained

    @property
    def total_bytes(self) -> int:
        with self.lock:
            return self._total_bytes

    def __len__(self) -> int:
        with self.lock:
            return len(self._chunks)

    def clear(self) -> None:
        """Drop everything buffered."""
        with self.lock:
            self._chunks = []
            self._total_bytes = 0
            logger.debug("Chunk buffer cleared")
