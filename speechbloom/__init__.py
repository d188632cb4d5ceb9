"""SpeechBloom: live microphone transcription with a pretrained Whisper model."""

__version__ = "0.1.0"
