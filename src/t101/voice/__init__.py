"""Voice input: capability detection, capture and the resolver chain."""

from .capabilities import VoiceCapabilities, detect_capabilities
from .errors import (
    MicrophonePermissionError,
    NoAudioDataError,
    RecognitionError,
    VoiceInputError,
    VoiceInputTimeout,
    VoiceInputUnavailable,
)
from .recorder import Recording
from .resolver import VoiceInputResolver

__all__ = [
    "MicrophonePermissionError",
    "NoAudioDataError",
    "RecognitionError",
    "Recording",
    "VoiceCapabilities",
    "VoiceInputError",
    "VoiceInputResolver",
    "VoiceInputTimeout",
    "VoiceInputUnavailable",
    "detect_capabilities",
]
