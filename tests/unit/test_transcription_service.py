"""Unit tests for the SpeechTranscriber facade."""

import asyncio
import itertools
from unittest.mock import Mock

import pytest

from speechbloom.config import SpeechBloomConfig
from speechbloom.errors import EngineNotReadyError
from speechbloom.models.session import ListenOptions
from speechbloom.services.transcription_service import SpeechTranscriber
from speechbloom.transcription.engine import TranscriptionEngine

_topic_ids = itertools.count()


@pytest.fixture
def make_transcriber(fake_capture):
    created = []

    def factory(backend, config=None):
        n = next(_topic_ids)
        transcriber = SpeechTranscriber(
            config=config,
            engine=TranscriptionEngine(backend),
            capture_factory=lambda: fake_capture,
            result_topic=f"service_result_{n}",
            error_topic=f"service_error_{n}",
        )
        created.append(transcriber)
        return transcriber

    yield factory
    for transcriber in created:
        transcriber.history.shutdown()


@pytest.mark.unit
class TestSpeechTranscriber:
    """Test cases for SpeechTranscriber."""

    def test_on_ready_fires_once(self, make_transcriber, fake_backend):
        """Test that on_ready is called once across repeated initialize calls."""
        transcriber = make_transcriber(fake_backend)
        on_ready = Mock()

        async def scenario():
            assert await transcriber.initialize(on_ready)
            assert await transcriber.initialize(on_ready)

        asyncio.run(scenario())

        on_ready.assert_called_once_with()
        assert transcriber.is_ready
        assert fake_backend.initialize_calls == 1

    def test_load_failure_keeps_rejecting_sessions(self, make_transcriber, make_backend, recorder):
        """Test that a failed load returns False and sessions are rejected."""
        transcriber = make_transcriber(make_backend(fail_load=True))
        on_ready = Mock()

        async def scenario():
            assert await transcriber.initialize(on_ready) is False
            return await transcriber.start_listening(recorder)

        assert asyncio.run(scenario()) is False
        on_ready.assert_not_called()
        assert isinstance(recorder.errors[0], EngineNotReadyError)
        assert not transcriber.is_listening

    def test_single_shot_feeds_history(self, make_transcriber, fake_backend, fake_capture, recorder):
        """Test that a single-shot result reaches the callback and the history."""
        transcriber = make_transcriber(fake_backend)

        async def scenario():
            await transcriber.initialize()
            assert await transcriber.start_listening(recorder)
            assert transcriber.is_listening
            fake_capture.emit(1.0)
            assert transcriber.stop_listening()
            await transcriber.wait_idle()

        asyncio.run(scenario())

        assert [r.text for r in recorder.results] == ["hello world"]
        assert transcriber.history.finals == ["hello world"]
        assert transcriber.history.render() == "hello world"

    def test_overrides_apply_to_session_options(self, make_transcriber, fake_backend, recorder):
        """Test that keyword overrides reach the session options."""
        transcriber = make_transcriber(fake_backend)

        async def scenario():
            await transcriber.initialize()
            await transcriber.start_listening(recorder, continuous=True, chunk_duration_ms=500)
            options = transcriber.controller.session.options
            await transcriber.shutdown()
            return options

        assert asyncio.run(scenario()) == ListenOptions(continuous=True, chunk_duration_ms=500)
        assert not transcriber.is_listening

    def test_default_cadence_comes_from_config(self, make_transcriber, fake_backend, recorder):
        """Test that the default flush cadence comes from config."""
        config = SpeechBloomConfig.defaults()
        config.set('transcription.chunk_duration_ms', 1500)
        transcriber = make_transcriber(fake_backend, config)

        async def scenario():
            await transcriber.initialize()
            await transcriber.start_listening(recorder)
            options = transcriber.controller.session.options
            await transcriber.shutdown()
            return options

        assert asyncio.run(scenario()) == ListenOptions(continuous=False, chunk_duration_ms=1500)

    def test_invalid_cadence_is_rejected(self, make_transcriber, fake_backend, recorder):
        """Test that a non-positive cadence is a programmer error, raised before any capture."""
        transcriber = make_transcriber(fake_backend)

        async def scenario():
            await transcriber.initialize()
            await transcriber.start_listening(recorder, continuous=True, chunk_duration_ms=0)

        with pytest.raises(ValueError):
            asyncio.run(scenario())
        assert not transcriber.is_listening
        assert recorder.calls == []
