"""Recording session lifecycle: capture, timed flushes and the flush chain.

A session moves Idle -> Capturing -> Stopping -> Idle. The controller holds
exactly one state value and replaces it on every transition; the capture
stream, encoder and flush timer live inside the Capturing value and are
released on every path out of it.

Each flush runs encoder.seal -> decoder -> resample -> engine -> dispatcher on
a per-session worker task, one unit at a time, so interim text is published
in capture order.
"""

import time
import asyncio
import itertools
import logging
from typing import Awaitable, Callable, Optional, Set, Union

from ..audio.buffer import ChunkBuffer
from ..audio.capture import MicrophoneCapture
from ..audio.decoder import AudioDecoder
from ..audio.encoder import AudioEncoder
from ..audio.resample import resample
from ..errors import CapturePermissionError, EngineNotReadyError, InferenceError, SpeechBloomError
from ..models.audio import FlushUnit, PCMSamples
from ..models.session import (
    CapturingState,
    IdleState,
    ListenOptions,
    SessionState,
    StoppingState,
)
from ..models.transcription import TranscriptResult
from ..transcription.engine import TranscriptionEngine
from ..transcription.publisher import ResultCallback, ResultDispatcher

logger = logging.getLogger(__name__)

DEFAULT_MIN_FLUSH_BYTES = 1000

CaptureFactory = Callable[[], MicrophoneCapture]
EncoderFactory = Callable[..., AudioEncoder]
SessionValue = Union[IdleState, CapturingState, StoppingState]


class SessionController:
    """Drives one recording session at a time for a transcription engine."""

    def __init__(self,
                 engine: TranscriptionEngine,
                 decoder: Optional[AudioDecoder] = None,
                 dispatcher: Optional[ResultDispatcher] = None,
                 capture_factory: Optional[CaptureFactory] = None,
                 encoder_factory: Optional[EncoderFactory] = None,
                 target_sample_rate: int = 16000,
                 min_flush_bytes: int = DEFAULT_MIN_FLUSH_BYTES,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """Initialize session controller.

        Args:
            engine: Shared transcription engine
            decoder: Decoder for sealed flush units
            dispatcher: Delivers results and errors to the session callback
            capture_factory: Creates an unopened capture device
            encoder_factory: Called as (sink, sample_rate, channels) to create an encoder
            target_sample_rate: Rate the engine requires
            min_flush_bytes: Flush units below this size are discarded as silence
            sleep: Coroutine used by the flush timer between ticks
        """
        self.engine = engine
        self.decoder = decoder or AudioDecoder()
        self.dispatcher = dispatcher or ResultDispatcher()
        self.capture_factory = capture_factory or MicrophoneCapture
        self.encoder_factory = encoder_factory or AudioEncoder
        self.target_sample_rate = target_sample_rate
        self.min_flush_bytes = min_flush_bytes
        self._sleep = sleep

        self._session: SessionValue = IdleState()
        self._session_ids = itertools.count(1)
        self._pending_workers: Set[asyncio.Task] = set()

        self.stats = {
            "sessions_started": 0,
            "flushes_queued": 0,
            "flushes_discarded": 0,
            "ticks_coalesced": 0,
        }

    @property
    def session(self) -> SessionValue:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def is_capturing(self) -> bool:
        return self._session.state is SessionState.CAPTURING

    async def start(self, on_result: ResultCallback, options: Optional[ListenOptions] = None) -> bool:
        """Idle -> Capturing.

        Failures (engine not ready, device denied) are reported through
        on_result and leave the controller Idle.

        Returns:
            True if a new session started
        """
        options = options or ListenOptions()
        if self._session.state is not SessionState.IDLE:
            logger.warning(f"start() ignored: session already {self._session.state.value}")
            return False

        if not self.engine.is_ready:
            self.dispatcher.dispatch(
                on_result, error=EngineNotReadyError("Model still loading, please wait"))
            return False

        session_id = f"session_{next(self._session_ids)}"
        buffer = ChunkBuffer()
        capture = self.capture_factory()
        try:
            sample_rate = capture.open()
            encoder = self.encoder_factory(buffer.push, sample_rate, capture.channels)
            capture.start(encoder.write)
        except CapturePermissionError as e:
            capture.close()
            logger.error(f"Microphone access denied for {session_id}: {e}")
            self.dispatcher.dispatch(on_result, error=e)
            return False
        except BaseException:
            capture.close()
            raise

        flush_queue: asyncio.Queue = asyncio.Queue()
        worker_task = asyncio.create_task(
            self._flush_worker(session_id, flush_queue, encoder, on_result),
            name=f"{session_id}-flush-worker")
        timer_task = None
        if options.continuous:
            timer_task = asyncio.create_task(
                self._flush_timer(session_id, options.interval_seconds),
                name=f"{session_id}-flush-timer")

        self._session = CapturingState(
            session_id=session_id,
            options=options,
            on_result=on_result,
            capture=capture,
            encoder=encoder,
            buffer=buffer,
            flush_queue=flush_queue,
            worker_task=worker_task,
            flush_counter=itertools.count(),
            timer_task=timer_task,
        )
        self.stats["sessions_started"] += 1
        mode = f"continuous every {options.chunk_duration_ms}ms" if options.continuous else "single-shot"
        logger.info(f"Recording started: {session_id} ({mode}, {sample_rate}Hz capture)")
        return True

    def stop(self) -> bool:
        """Capturing -> Stopping -> Idle without waiting for the final inference.

        The terminal flush is queued behind any in-flight work and its result is
        dispatched when it completes, possibly after this method has returned.

        Returns:
            True if a session was stopped
        """
        session = self._session
        if not isinstance(session, CapturingState):
            return False

        if session.timer_task is not None:
            session.timer_task.cancel()

        stopping = StoppingState(
            session_id=session.session_id,
            options=session.options,
            on_result=session.on_result,
            buffer=session.buffer,
            encoder=session.encoder,
            flush_queue=session.flush_queue,
            worker_task=session.worker_task,
            flush_counter=session.flush_counter,
        )
        self._session = stopping
        try:
            session.capture.close()
            stopping.encoder.stop()
            unit = self._take_flush_unit(stopping, is_final=True)
            if unit is not None:
                self._queue_flush(stopping, unit)
        finally:
            # Sentinel: the worker exits after the units queued ahead of it
            stopping.flush_queue.put_nowait(None)
            self._pending_workers.add(stopping.worker_task)
            stopping.worker_task.add_done_callback(self._pending_workers.discard)
            self._session = IdleState()
            logger.info(f"Recording stopped: {stopping.session_id}")
        return True

    async def wait_for_pending(self) -> None:
        """Wait until flush work from stopped sessions has been dispatched."""
        while self._pending_workers:
            await asyncio.gather(*list(self._pending_workers), return_exceptions=True)

    async def shutdown(self) -> None:
        """Stop any active session and wait for its remaining flushes."""
        self.stop()
        await self.wait_for_pending()

    async def _flush_timer(self, session_id: str, interval: float) -> None:
        """Repeating flush task bound to one Capturing session."""
        logger.debug(f"Flush timer started for {session_id}: every {interval:.3f}s")
        try:
            while True:
                await self._sleep(interval)
                session = self._session
                if not isinstance(session, CapturingState) or session.session_id != session_id:
                    return
                self._on_tick(session)
        except asyncio.CancelledError:
            logger.debug(f"Flush timer cancelled for {session_id}")
            raise

    def _on_tick(self, session: CapturingState) -> None:
        if session.flush_queue.qsize() > 0:
            # A unit is already waiting behind the in-flight chain; leave the
            # chunks buffered so they join the next flush.
            self.stats["ticks_coalesced"] += 1
            logger.debug(f"Tick coalesced for {session.session_id}: flush chain busy")
            return
        session.encoder.request_data()
        unit = self._take_flush_unit(session, is_final=False)
        if unit is not None:
            self._queue_flush(session, unit)

    def _take_flush_unit(self,
                         session: Union[CapturingState, StoppingState],
                         is_final: bool) -> Optional[FlushUnit]:
        """Drain the buffer into a FlushUnit, or None if there is nothing worth sending."""
        chunks = session.buffer.drain_all()
        if not chunks:
            return None

        unit = FlushUnit(
            payload=b"".join(chunk.data for chunk in chunks),
            flush_index=next(session.flush_counter),
            is_final=is_final,
            sample_rate=session.encoder.sample_rate,
            channels=session.encoder.channels,
            chunk_count=len(chunks),
        )
        if unit.size < self.min_flush_bytes:
            self.stats["flushes_discarded"] += 1
            logger.debug(f"Discarding flush #{unit.flush_index} of {session.session_id}: "
                         f"{unit.size} bytes < {self.min_flush_bytes}")
            return None
        return unit

    def _queue_flush(self, session: Union[CapturingState, StoppingState], unit: FlushUnit) -> None:
        self.stats["flushes_queued"] += 1
        logger.debug(f"Queued flush #{unit.flush_index} of {session.session_id}: "
                     f"{unit.size} bytes, {unit.chunk_count} chunks, final={unit.is_final}")
        session.flush_queue.put_nowait(unit)

    async def _flush_worker(self,
                            session_id: str,
                            flush_queue: asyncio.Queue,
                            encoder: AudioEncoder,
                            on_result: ResultCallback) -> None:
        """Run queued flush units one at a time until the stop sentinel."""
        while True:
            unit = await flush_queue.get()
            try:
                if unit is None:
                    logger.debug(f"Flush worker for {session_id} finished")
                    return
                await self._process_flush(session_id, unit, encoder, on_result)
            finally:
                flush_queue.task_done()

    async def _process_flush(self,
                             session_id: str,
                             unit: FlushUnit,
                             encoder: AudioEncoder,
                             on_result: ResultCallback) -> None:
        """Seal -> decode -> resample -> transcribe -> dispatch for one unit.

        Sealing and decoding run on the decoder's executor, inference on the
        engine's.
        """
        start_time = time.time()
        try:
            loop = asyncio.get_running_loop()
            blob = await loop.run_in_executor(self.decoder.executor, encoder.seal, unit)
            decoded = await self.decoder.decode(blob)
            samples = resample(decoded.samples, decoded.sample_rate, self.target_sample_rate)
            text = await self.engine.transcribe(PCMSamples(samples, self.target_sample_rate))
        except SpeechBloomError as e:
            logger.error(f"Flush #{unit.flush_index} of {session_id} failed: {e}")
            self.dispatcher.dispatch(on_result, error=e)
            return
        except Exception as e:
            logger.error(f"Unhandled exception in flush #{unit.flush_index} of {session_id}: {e}",
                         exc_info=True)
            self.dispatcher.dispatch(on_result, error=InferenceError(str(e)))
            return

        result = TranscriptResult(
            text=text,
            is_final=unit.is_final,
            flush_index=unit.flush_index,
            session_id=session_id,
            processing_time=time.time() - start_time,
        )
        self.dispatcher.dispatch(on_result, result=result)
