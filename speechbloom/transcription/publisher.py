"""Result dispatch: delivers errors and transcripts to callers and pub/sub topics."""

import logging
from dataclasses import replace
from typing import Callable, Optional

from pubsub import pub

from ..models.transcription import TranscriptResult

logger = logging.getLogger(__name__)

RESULT_TOPIC = "transcript_result"
ERROR_TOPIC = "transcript_error"

ResultCallback = Callable[[Optional[Exception], Optional[TranscriptResult]], None]


class ResultDispatcher:
    """Wraps engine output for the caller's error-first callback.

    Each dispatch carries an error or a result, never both and never neither.
    Results whose text is empty after trimming are suppressed. Delivered events
    are also published with pubsub.pub so UI components can subscribe.
    Exceptions raised by the callback or by subscribers are logged and never
    reach the flush chain.
    """

    def __init__(self, result_topic: str = RESULT_TOPIC, error_topic: str = ERROR_TOPIC):
        """Initialize result dispatcher.

        Args:
            result_topic: Pub/sub topic for delivered transcripts
            error_topic: Pub/sub topic for delivered errors
        """
        self.result_topic = result_topic
        self.error_topic = error_topic
        self.dispatched_count = 0
        self.suppressed_count = 0
        logger.info(f"ResultDispatcher initialized with topics: {result_topic}, {error_topic}")

    def dispatch(self,
                 callback: Optional[ResultCallback],
                 error: Optional[Exception] = None,
                 result: Optional[TranscriptResult] = None) -> bool:
        """Deliver an error or a result.

        Returns:
            True if the callback was invoked, False if the result was suppressed
        """
        if (error is None) == (result is None):
            raise ValueError("dispatch() needs exactly one of error or result")

        if error is not None:
            logger.warning(f"Dispatching error: {error.__class__.__name__}: {error}")
            self._deliver(callback, error, None)
            self._publish(self.error_topic, error=error)
            self.dispatched_count += 1
            return True

        text = (result.text or "").strip()
        if not text:
            self.suppressed_count += 1
            logger.debug(f"Suppressed empty transcript for flush #{result.flush_index}")
            return False

        delivered = replace(result, text=text)
        logger.info(f"{'FINAL' if delivered.is_final else 'INTERIM'}: '{text}'")
        self._deliver(callback, None, delivered)
        self._publish(self.result_topic, result=delivered)
        self.dispatched_count += 1
        return True

    def _deliver(self,
                 callback: Optional[ResultCallback],
                 error: Optional[Exception],
                 result: Optional[TranscriptResult]) -> None:
        if callback is None:
            return
        try:
            callback(error, result)
        except Exception as e:
            logger.error(f"Error in result callback: {e}", exc_info=True)

    def _publish(self, topic: str, **message) -> None:
        try:
            pub.sendMessage(topic, **message)
        except Exception as e:
            logger.error(f"Error in '{topic}' subscriber: {e}", exc_info=True)
