"""Error taxonomy for the capture-to-transcription pipeline.

Every error is delivered to callers through the result callback's error slot;
none of these are raised past the async boundary of the public API.
"""


class SpeechBloomError(Exception):
    """Base class for all SpeechBloom errors."""


class ModelLoadError(SpeechBloomError):
    """The speech-recognition model could not be fetched or instantiated."""


class EngineNotReadyError(SpeechBloomError):
    """A transcription was requested before the engine finished loading."""


class CapturePermissionError(SpeechBloomError, PermissionError):
    """The capture device could not be acquired (denied, missing or busy)."""


class DecodeError(SpeechBloomError):
    """A flushed audio unit was empty or could not be decoded."""


class InferenceError(SpeechBloomError):
    """The engine failed to transcribe a flushed audio unit."""
