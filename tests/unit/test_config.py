"""Unit tests for SpeechBloomConfig."""

import os

import pytest

from speechbloom.config import DEFAULT_CONFIG, SpeechBloomConfig


@pytest.mark.unit
class TestSpeechBloomConfig:
    """Test cases for SpeechBloomConfig."""

    def test_defaults(self):
        """Test the built-in defaults."""
        config = SpeechBloomConfig.defaults()

        assert config.config_file is None
        assert config.get('transcription.model_name') == "openai/whisper-tiny.en"
        assert config.get('transcription.min_flush_bytes') == 1000
        assert config.get('audio.capture_sample_rate') is None
        assert config.get('audio.missing', 'fallback') == 'fallback'

    def test_yaml_overrides_are_merged(self, tmp_path):
        """Test that a YAML file overrides only the keys it sets."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "transcription:\n"
            "  chunk_duration_ms: 1500\n"
            "audio:\n"
            "  container_format: WAV\n"
        )

        config = SpeechBloomConfig(str(path))

        assert config.get('transcription.chunk_duration_ms') == 1500
        assert config.get('transcription.target_sample_rate') == 16000
        assert config.get('audio.container_format') == "WAV"
        assert config.get('audio.fragment_ms') == 250

    def test_relative_log_path_resolves_next_to_config(self, tmp_path):
        """Test resolving a relative log path against the config file directory."""
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  file_path: logs/app.log\n")

        config = SpeechBloomConfig(str(path))

        assert config.get('logging.file_path') == os.path.join(str(tmp_path), "logs", "app.log")

    def test_missing_file(self, tmp_path):
        """Test loading a config file that does not exist."""
        with pytest.raises(FileNotFoundError):
            SpeechBloomConfig(str(tmp_path / "nope.yaml"))

    def test_invalid_yaml(self, tmp_path):
        """Test loading malformed YAML."""
        path = tmp_path / "config.yaml"
        path.write_text("transcription: [unclosed\n")

        with pytest.raises(ValueError, match="Invalid YAML"):
            SpeechBloomConfig(str(path))

    def test_empty_file(self, tmp_path):
        """Test loading an empty config file."""
        path = tmp_path / "config.yaml"
        path.write_text("")

        with pytest.raises(ValueError, match="empty"):
            SpeechBloomConfig(str(path))

    def test_non_mapping_file(self, tmp_path):
        """Test loading YAML that is not a mapping."""
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ValueError, match="mapping"):
            SpeechBloomConfig(str(path))

    def test_set_does_not_touch_defaults(self):
        """Test that set() changes only this config instance."""
        config = SpeechBloomConfig.defaults()
        config.set('transcription.history_size', 3)
        config.set('ui.theme', 'dark')

        assert config.get('transcription.history_size') == 3
        assert config.get('ui.theme') == 'dark'
        assert DEFAULT_CONFIG['transcription']['history_size'] == 10
