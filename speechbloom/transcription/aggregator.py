"""In-memory transcript history fed by the result topic.

Final results are kept in a rolling window (oldest dropped first) and clear
the interim line; interim results replace the interim line. Nothing is
persisted.
"""

import logging
import threading
from collections import deque
from typing import List

from pubsub import pub

from .publisher import RESULT_TOPIC
from ..models.transcription import TranscriptResult

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 10


class TranscriptHistory:
    """Rolling window of final transcripts plus the current interim line."""

    def __init__(self, topic: str = RESULT_TOPIC, max_finals: int = DEFAULT_HISTORY_SIZE):
        """Initialize transcript history.

        Args:
            topic: Topic for transcription results
            max_finals: How many final transcripts to keep
        """
        if max_finals <= 0:
            raise ValueError(f"max_finals must be positive, got {max_finals}")
        self.topic = topic
        self.max_finals = max_finals
        self._finals = deque(maxlen=max_finals)
        self._interim_text = ""
        self.lock = threading.RLock()
        self._subscribed = False

        pub.subscribe(self._on_result, topic)
        self._subscribed = True
        logger.info(f"TranscriptHistory initialized - subscribed to {topic}")

    def _on_result(self, result: TranscriptResult) -> None:
        """Handle transcription result."""
        self.add(result)

    def add(self, result: TranscriptResult) -> None:
        text = (result.text or "").strip()
        if not text:
            return
        with self.lock:
            if result.is_interim:
                self._interim_text = text
            else:
                self._finals.append(text)
                self._interim_text = ""

    @property
    def finals(self) -> List[str]:
        with self.lock:
            return list(self._finals)

    @property
    def interim_text(self) -> str:
        with self.lock:
            return self._interim_text

    def render(self, separator: str = " ") -> str:
        """Join the final transcripts and the interim line."""
        with self.lock:
            parts = list(self._finals)
            if self._interim_text:
                parts.append(self._interim_text)
        return separator.join(parts)

    def clear(self) -> None:
        with self.lock:
            self._finals.clear()
            self._interim_text = ""
        logger.debug("Transcript history cleared")

    def shutdown(self) -> None:
        """Stop listening to the result topic."""
        if not self._subscribed:
            return
        try:
            pub.unsubscribe(self._on_result, self.topic)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")
        self._subscribed = False
