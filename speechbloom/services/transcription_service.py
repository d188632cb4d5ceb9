"""Public transcription facade used by UI collaborators."""

import logging
from dataclasses import replace
from typing import Any, Callable, Optional

from ..audio.capture import MicrophoneCapture
from ..audio.decoder import AudioDecoder
from ..audio.encoder import AudioEncoder
from ..config import SpeechBloomConfig
from ..errors import ModelLoadError
from ..models.session import ListenOptions
from ..transcription.aggregator import TranscriptHistory
from ..transcription.engine import TranscriptionEngine, get_shared_engine
from ..transcription.publisher import ResultCallback, ResultDispatcher, RESULT_TOPIC, ERROR_TOPIC
from .session_controller import CaptureFactory, SessionController

logger = logging.getLogger(__name__)


class SpeechTranscriber:
    """Loads the model once and records single-shot or continuous sessions.

    UI code calls initialize(), start_listening() and stop_listening(), and
    receives results through an error-first callback and the result topic.
    """

    def __init__(self,
                 config: Optional[SpeechBloomConfig] = None,
                 engine: Optional[TranscriptionEngine] = None,
                 capture_factory: Optional[CaptureFactory] = None,
                 result_topic: str = RESULT_TOPIC,
                 error_topic: str = ERROR_TOPIC):
        """Initialize transcription service.

        Args:
            config: Application configuration (defaults when None)
            engine: Engine to use; defaults to the shared engine for the configured model
            capture_factory: Creates the capture device; defaults to the configured microphone
            result_topic: Pub/sub topic for transcripts
            error_topic: Pub/sub topic for errors
        """
        self.config = config or SpeechBloomConfig.defaults()
        target_sample_rate = self.config.get('transcription.target_sample_rate', 16000)

        self.engine = engine or get_shared_engine(
            model_name=self.config.get('transcription.model_name'),
            device=self.config.get('transcription.device', 'cpu'),
            target_sample_rate=target_sample_rate,
        )
        self.dispatcher = ResultDispatcher(result_topic, error_topic)
        self.history = TranscriptHistory(
            topic=result_topic,
            max_finals=self.config.get('transcription.history_size', 10),
        )
        self.controller = SessionController(
            engine=self.engine,
            decoder=AudioDecoder(),
            dispatcher=self.dispatcher,
            capture_factory=capture_factory or self._create_capture,
            encoder_factory=self._create_encoder,
            target_sample_rate=target_sample_rate,
            min_flush_bytes=self.config.get('transcription.min_flush_bytes', 1000),
        )
        self._ready_notified = False

    @property
    def is_ready(self) -> bool:
        return self.engine.is_ready

    @property
    def is_listening(self) -> bool:
        return self.controller.is_capturing

    async def initialize(self, on_ready: Optional[Callable[[], Any]] = None) -> bool:
        """Load the model; on_ready is called once, after the first successful load.

        A load failure is logged and reported by returning False; it does not
        raise, and start_listening() keeps rejecting sessions until a later
        initialize() succeeds.
        """
        try:
            await self.engine.initialize()
        except ModelLoadError as e:
            logger.error(f"Failed to load model: {e}")
            return False

        if on_ready is not None and not self._ready_notified:
            self._ready_notified = True
            on_ready()
        return True

    async def start_listening(self,
                              on_result: ResultCallback,
                              options: Optional[ListenOptions] = None,
                              **overrides: Any) -> bool:
        """Start a recording session.

        Args:
            on_result: Called as on_result(error, result) for every flush outcome
            options: ListenOptions; defaults to single-shot with the configured cadence
            overrides: Field overrides for options (continuous, chunk_duration_ms)

        Returns:
            True if a session started; failures are reported through on_result

        Raises:
            ValueError: If the options are invalid (e.g. chunk_duration_ms <= 0)
        """
        if options is None:
            options = ListenOptions(
                chunk_duration_ms=self.config.get('transcription.chunk_duration_ms', 3000))
        if overrides:
            options = replace(options, **overrides)
        return await self.controller.start(on_result, options)

    def stop_listening(self) -> bool:
        """Stop the current session; the final transcript is delivered asynchronously."""
        return self.controller.stop()

    async def wait_idle(self) -> None:
        """Wait for results still in flight from stopped sessions."""
        await self.controller.wait_for_pending()

    async def shutdown(self) -> None:
        """Stop listening, flush remaining work and detach the history."""
        await self.controller.shutdown()
        self.history.shutdown()

    def _create_capture(self) -> MicrophoneCapture:
        return MicrophoneCapture(
            sample_rate=self.config.get('audio.capture_sample_rate'),
            chunk_size=self.config.get('audio.chunk_size', 1024),
            channels=self.config.get('audio.channels', 1),
            input_device_index=self.config.get('audio.input_device_index'),
        )

    def _create_encoder(self, sink, sample_rate: int, channels: int) -> AudioEncoder:
        return AudioEncoder(
            sink,
            sample_rate=sample_rate,
            channels=channels,
            fragment_ms=self.config.get('audio.fragment_ms', 250),
            container_format=self.config.get('audio.container_format', 'FLAC'),
        )
