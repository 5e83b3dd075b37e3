"""Microphone capture using sounddevice."""

import asyncio
import io
import logging
import threading
from dataclasses import dataclass, field

import numpy as np
import soundfile as sf

from .errors import MicrophonePermissionError, VoiceInputError

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 16000


@dataclass
class Recording:
    """Captured microphone chunks.

    Attributes:
        chunks: int16 sample blocks in capture order
        sample_rate: Samples per second
        channels: Channel count
    """

    chunks: list[np.ndarray] = field(default_factory=list)
    sample_rate: int = DEFAULT_SAMPLE_RATE
    channels: int = 1

    @property
    def frames(self) -> int:
        return sum(len(chunk) for chunk in self.chunks)

    @property
    def is_empty(self) -> bool:
        return self.frames == 0

    def to_wav(self) -> bytes:
        """Assemble the chunks into a single WAV payload.

        Raises:
            ValueError: If nothing was recorded
        """
        if self.is_empty:
            raise ValueError("No audio data recorded")
        samples = np.concatenate(self.chunks)
        buffer = io.BytesIO()
        sf.write(buffer, samples, self.sample_rate, format="WAV", subtype="PCM_16")
        return buffer.getvalue()


def permission_reason(error: Exception) -> str | None:
    """Classify a device-open failure as denied, no_device or busy.

    Returns None when the failure is not about access to the device.
    """
    if isinstance(error, PermissionError):
        return "denied"
    message = str(error).lower()
    if "permission" in message or "not permitted" in message:
        return "denied"
    if "no default input device" in message or "querying device -1" in message:
        return "no_device"
    if "invalid device" in message or "no such device" in message:
        return "no_device"
    if "unavailable" in message or "busy" in message or "-9985" in message:
        return "busy"
    return None


class SoundDeviceRecorder:
    """Records from the default input device for a bounded duration."""

    def __init__(self, sample_rate: int = DEFAULT_SAMPLE_RATE, channels: int = 1) -> None:
        self.sample_rate = sample_rate
        self.channels = channels

    def _record_blocking(self, seconds: float, stop: threading.Event) -> Recording:
        import sounddevice as sd

        recording = Recording(sample_rate=self.sample_rate, channels=self.channels)

        def callback(indata, frames, time_info, status) -> None:
            if status:
                logger.warning(f"Input stream status: {status}")
            recording.chunks.append(indata.copy())

        try:
            with sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                callback=callback,
            ):
                stop.wait(seconds)
        except (sd.PortAudioError, OSError) as e:
            reason = permission_reason(e)
            if reason is not None:
                raise MicrophonePermissionError(reason, original_error=e) from e
            raise VoiceInputError(f"Recording failed: {e}", original_error=e) from e

        logger.debug(f"Recorded {recording.frames} frames in {len(recording.chunks)} chunks")
        return recording

    async def record(self, max_duration_ms: int) -> Recording:
        """Record for up to ``max_duration_ms``.

        Cancelling the call stops the stream early.

        Raises:
            MicrophonePermissionError: If the device cannot be opened
            VoiceInputError: For any other stream failure
        """
        stop = threading.Event()
        try:
            return await asyncio.to_thread(
                self._record_blocking, max(max_duration_ms, 0) / 1000, stop
            )
        except asyncio.CancelledError:
            stop.set()
            raise
