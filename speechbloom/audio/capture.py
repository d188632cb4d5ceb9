"""Microphone capture on top of a PyAudio input stream."""

import logging
from typing import Callable, Optional

import pyaudio

from ..errors import CapturePermissionError

logger = logging.getLogger(__name__)


class MicrophoneCapture:
    """Acquires the input device and forwards raw 16-bit frames to a sink.

    open() acquires the device without starting it, so the caller can size the
    encoder for the device's real sample rate before start(sink). The stream
    runs in PyAudio callback mode: the sink is called from the PortAudio
    thread and must be thread-safe.
    """

    def __init__(
        self,
        sample_rate: Optional[int] = None,
        chunk_size: int = 1024,
        channels: int = 1,
        input_device_index: Optional[int] = None,
        format: int = pyaudio.paInt16,
    ):
        """Initialize microphone capture.

        Args:
            sample_rate: Capture rate in Hz; None uses the device's default rate
            chunk_size: Frames per buffer delivered to the sink
            channels: Number of audio channels
            input_device_index: PyAudio device index; None uses the default device
            format: PyAudio sample format (16-bit signed int)
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.input_device_index = input_device_index
        self.format = format

        self.sink: Optional[Callable[[bytes], None]] = None
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream: Optional[pyaudio.Stream] = None
        self.total_chunks = 0
        self.overflow_count = 0

    @property
    def is_open(self) -> bool:
        return self.stream is not None

    def open(self) -> int:
        """Acquire the device without starting the stream.

        Returns:
            The sample rate the stream was opened at

        Raises:
            CapturePermissionError: If the device is denied, missing or busy
        """
        if self.is_open:
            logger.warning("Microphone already open")
            return self.sample_rate

        self.pyaudio_instance = pyaudio.PyAudio()
        try:
            if self.sample_rate is None:
                self.sample_rate = self._default_sample_rate()
            self.stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
                input_device_index=self.input_device_index,
                stream_callback=self._on_frames,
                start=False,
            )
        except (OSError, ValueError) as e:
            logger.error(f"Could not acquire microphone: {e}")
            self._terminate()
            raise CapturePermissionError(f"Microphone access failed: {e}") from e

        logger.info(f"Microphone opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk, {self.channels} channel(s)")
        return self.sample_rate

    def start(self, sink: Callable[[bytes], None]) -> None:
        """Start delivering captured frames to sink."""
        if not self.is_open:
            raise CapturePermissionError("Microphone is not open")
        self.sink = sink
        self.total_chunks = 0
        self.overflow_count = 0
        try:
            self.stream.start_stream()
        except OSError as e:
            logger.error(f"Could not start microphone stream: {e}")
            self.close()
            raise CapturePermissionError(f"Microphone stream failed to start: {e}") from e

    def close(self) -> None:
        """Stop the stream and release the device. Safe to call repeatedly."""
        if self.stream is not None:
            try:
                self.stream.stop_stream()
                self.stream.close()
            except OSError as e:
                logger.warning(f"Error closing microphone stream: {e}")
            finally:
                self.stream = None
                self.sink = None
            logger.info(f"Microphone closed. Total chunks: {self.total_chunks}, "
                        f"overflows: {self.overflow_count}")
        self._terminate()

    def _default_sample_rate(self) -> int:
        if self.input_device_index is None:
            info = self.pyaudio_instance.get_default_input_device_info()
        else:
            info = self.pyaudio_instance.get_device_info_by_index(self.input_device_index)
        return int(info["defaultSampleRate"])

    def _terminate(self) -> None:
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None

    def _on_frames(self, in_data, frame_count, time_info, status):
        """PortAudio callback."""
        if status & pyaudio.paInputOverflow:
            self.overflow_count += 1
        self.total_chunks += 1
        sink = self.sink
        if sink is not None:
            sink(in_data)
        return (None, pyaudio.paContinue)
