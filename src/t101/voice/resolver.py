"""Voice input fallback chain.

On-device recognition is tried first. If it is missing or fails, the
microphone is recorded and the audio is transcribed by the server. Both
steps share one deadline, so a call never outlives its budget.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from .capabilities import VoiceCapabilities
from .errors import (
    NoAudioDataError,
    VoiceInputTimeout,
    VoiceInputUnavailable,
)

logger = logging.getLogger(__name__)

Transcriber = Callable[[bytes, str], Awaitable[str]]

RECORDING_FILENAME = "recording.wav"

# Time allowed for the input stream to close after the recording budget
RECORDER_GRACE_S = 1.0


class VoiceInputResolver:
    """Resolves a single utterance to text.

    Args:
        capabilities: Detected recognizer and recorder
        transcriber: Coroutine taking (audio bytes, filename) and returning text
    """

    def __init__(self, capabilities: VoiceCapabilities, transcriber: Transcriber | None) -> None:
        self.capabilities = capabilities
        self.transcriber = transcriber

    async def resolve_voice_input(self, max_duration_ms: int) -> str:
        """Return a transcript of what the user said.

        Raises:
            VoiceInputUnavailable: If there is nothing to listen with
            VoiceInputTimeout: If the budget ran out before recording started
            MicrophonePermissionError: If the microphone could not be opened
            NoAudioDataError: If the recording captured nothing
            Exception: Whatever the transcriber raised; there is no further fallback
        """
        recognizer = self.capabilities.recognizer
        recorder = self.capabilities.recorder
        if recognizer is None and (recorder is None or self.transcriber is None):
            raise VoiceInputUnavailable("no speech recognizer or microphone recorder available")

        deadline = time.monotonic() + max_duration_ms / 1000

        # === ON-DEVICE RECOGNITION ===
        if recognizer is not None:
            try:
                text = await asyncio.wait_for(
                    recognizer.recognize(max_duration_ms), timeout=max_duration_ms / 1000
                )
                logger.debug(f"Recognizer transcript: {text}")
                return text
            except asyncio.TimeoutError as e:
                logger.info("On-device recognition timed out, falling back to recording")
                if recorder is None or self.transcriber is None:
                    raise VoiceInputTimeout("voice input timed out") from e
            except Exception as e:
                logger.info(f"On-device recognition failed, falling back to recording: {e!r}")
                if recorder is None or self.transcriber is None:
                    raise

        # === RECORD AND TRANSCRIBE ===
        remaining_ms = int((deadline - time.monotonic()) * 1000)
        if remaining_ms <= 0:
            raise VoiceInputTimeout("voice input budget exhausted before recording")

        try:
            recording = await asyncio.wait_for(
                recorder.record(remaining_ms),
                timeout=remaining_ms / 1000 + RECORDER_GRACE_S,
            )
        except asyncio.TimeoutError as e:
            raise VoiceInputTimeout("microphone recording did not stop in time") from e

        if recording.is_empty:
            raise NoAudioDataError()

        return await self.transcriber(recording.to_wav(), RECORDING_FILENAME)
