"""Voice input errors."""

PERMISSION_REASONS = ("denied", "no_device", "busy")


class VoiceInputError(Exception):
    """Base exception for voice input failures."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class MicrophonePermissionError(VoiceInputError):
    """The microphone could not be opened.

    ``reason`` is one of "denied" (access refused by the OS), "no_device"
    (no input device present) or "busy" (device held by another process).
    """

    _MESSAGES = {
        "denied": "microphone access denied",
        "no_device": "no microphone found",
        "busy": "microphone is in use by another application",
    }

    def __init__(self, reason: str, original_error: Exception | None = None) -> None:
        if reason not in PERMISSION_REASONS:
            raise ValueError(f"Unknown permission reason: {reason}")
        super().__init__(self._MESSAGES[reason], original_error)
        self.reason = reason


class NoAudioDataError(VoiceInputError):
    def __init__(self, message: str = "no audio data recorded") -> None:
        super().__init__(message)


class VoiceInputTimeout(VoiceInputError):
    """The voice input budget ran out before a transcript was produced."""


class VoiceInputUnavailable(VoiceInputError):
    """Neither a recognizer nor a recorder is available."""


class RecognitionError(VoiceInputError):
    """The on-device recognizer failed."""
