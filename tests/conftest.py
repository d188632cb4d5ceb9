"""Pytest configuration and fixtures for SpeechBloom tests."""

import os
import asyncio
import logging
from typing import List, Optional, Tuple
from unittest.mock import Mock, patch

import numpy as np
import pytest

from speechbloom.errors import CapturePermissionError
from speechbloom.transcription.base import AbstractTranscriptionBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without hardware or models")
    config.addinivalue_line("markers", "hardware: tests that need a real microphone")


def pytest_collection_modifyitems(config, items):
    if os.environ.get("SPEECHBLOOM_HARDWARE_TESTS") == "1":
        return
    skip_hardware = pytest.mark.skip(reason="set SPEECHBLOOM_HARDWARE_TESTS=1 to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


def generate_pcm(pattern: str = "sine", duration_seconds: float = 1.0,
                 sample_rate: int = 16000, channels: int = 1) -> bytes:
    """Generate 16-bit PCM bytes for testing.

    Args:
        pattern: Type of audio pattern ('sine', 'noise', 'silence')
        duration_seconds: Duration of audio
        sample_rate: Sample rate in Hz
        channels: Interleaved channel count
    """
    samples = int(duration_seconds * sample_rate)

    if pattern == "sine":
        t = np.linspace(0, duration_seconds, samples, False)
        wave_data = 0.5 * np.sin(2 * np.pi * 440 * t)  # 440 Hz sine wave
    elif pattern == "noise":
        wave_data = np.random.uniform(-0.5, 0.5, samples)
    elif pattern == "silence":
        wave_data = np.zeros(samples)
    else:
        raise ValueError(f"Unknown pattern: {pattern}")

    audio_data = (wave_data * 32767).astype(np.int16)
    if channels > 1:
        audio_data = np.repeat(audio_data[:, None], channels, axis=1)
    return audio_data.tobytes()


@pytest.fixture
def audio_test_data():
    """Generate various audio test data patterns."""
    return generate_pcm


class FakeBackend(AbstractTranscriptionBackend):
    """Backend that records its inputs and returns canned text."""

    def __init__(self, text: str = "hello world", fail_load: bool = False,
                 fail_transcribe: bool = False, model_name: str = "fake-whisper"):
        super().__init__(model_name)
        self.text = text
        self.fail_load = fail_load
        self.fail_transcribe = fail_transcribe
        self.initialize_calls = 0
        self.calls: List[Tuple[int, int]] = []

    def initialize(self) -> bool:
        self.initialize_calls += 1
        if self.fail_load:
            raise OSError("model files not found")
        return True

    def transcribe(self, samples: np.ndarray, sample_rate: int) -> str:
        self.calls.append((len(samples), sample_rate))
        if self.fail_transcribe:
            raise RuntimeError("CUDA out of memory")
        return self.text

    def cleanup(self) -> None:
        pass


class FakeCapture:
    """Stand-in for MicrophoneCapture that lets tests push PCM frames."""

    channels = 1

    def __init__(self, sample_rate: int = 48000, deny: bool = False, chunk_size: int = 1024):
        self.sample_rate = sample_rate
        self.deny = deny
        self.chunk_size = chunk_size
        self.sink = None
        self.open_calls = 0
        self.close_calls = 0
        self.is_open = False

    def open(self) -> int:
        self.open_calls += 1
        if self.deny:
            raise CapturePermissionError("Permission denied by user")
        self.is_open = True
        return self.sample_rate

    def start(self, sink) -> None:
        self.sink = sink

    def close(self) -> None:
        self.close_calls += 1
        self.is_open = False
        self.sink = None

    def emit(self, seconds: float, pattern: str = "sine") -> None:
        """Feed `seconds` of audio to the sink in chunk_size blocks."""
        data = generate_pcm(pattern, seconds, self.sample_rate)
        block = self.chunk_size * 2
        for offset in range(0, len(data), block):
            self.sink(data[offset:offset + block])


class ManualTicker:
    """Replacement for asyncio.sleep that advances the flush timer on demand."""

    def __init__(self):
        self._wake = asyncio.Event()
        self._sleeping = asyncio.Event()
        self.intervals: List[float] = []

    async def sleep(self, interval: float) -> None:
        self.intervals.append(interval)
        self._sleeping.set()
        await self._wake.wait()
        self._wake.clear()

    async def tick(self) -> None:
        """Release one timer tick and wait until the timer sleeps again."""
        await self._sleeping.wait()
        self._sleeping.clear()
        self._wake.set()
        await self._sleeping.wait()


class CallbackRecorder:
    """Error-first callback that records every invocation."""

    def __init__(self):
        self.calls: List[Tuple[Optional[Exception], object]] = []

    def __call__(self, error, result):
        self.calls.append((error, result))

    @property
    def results(self):
        return [r for e, r in self.calls if e is None]

    @property
    def errors(self):
        return [e for e, r in self.calls if e is not None]


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def fake_capture():
    return FakeCapture()


@pytest.fixture
def recorder():
    return CallbackRecorder()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.start_stream.return_value = None
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_default_input_device_info.return_value = {
            "index": 0, "name": "Test Mic", "defaultSampleRate": 44100.0,
        }

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def make_ticker():
    """ManualTicker factory; call it inside the running event loop."""
    return ManualTicker


@pytest.fixture
def make_capture():
    return FakeCapture


@pytest.fixture
def make_backend():
    return FakeBackend
