"""Continuous on-device speech recognition with Vosk."""

import asyncio
import json
import logging
import threading
import time
from pathlib import Path

from .errors import MicrophonePermissionError, RecognitionError
from .recorder import DEFAULT_SAMPLE_RATE, permission_reason

logger = logging.getLogger(__name__)

BLOCK_SIZE = 4000


class VoskRecognizer:
    """Listens to the microphone until Vosk produces a final transcript.

    The model is loaded on first use, which takes a few seconds for the
    small English models.
    """

    def __init__(self, model_path: Path, sample_rate: int = DEFAULT_SAMPLE_RATE) -> None:
        self.model_path = model_path
        self.sample_rate = sample_rate
        self._model = None

    def _load_model(self):
        if self._model is None:
            from vosk import Model

            if not self.model_path.is_dir():
                raise RecognitionError(f"Vosk model not found at {self.model_path}")
            try:
                self._model = Model(str(self.model_path))
            except Exception as e:
                raise RecognitionError(f"Failed to load Vosk model: {e}", original_error=e) from e
        return self._model

    def _listen_blocking(self, deadline: float, stop: threading.Event) -> str:
        try:
            import sounddevice as sd
            from vosk import KaldiRecognizer
        except (ImportError, OSError) as e:
            raise RecognitionError(f"Recognizer backend unavailable: {e}", original_error=e) from e

        model = self._load_model()
        try:
            recognizer = KaldiRecognizer(model, self.sample_rate)
        except Exception as e:
            raise RecognitionError(f"Failed to create a recognizer: {e}", original_error=e) from e

        try:
            with sd.RawInputStream(
                samplerate=self.sample_rate,
                blocksize=BLOCK_SIZE,
                channels=1,
                dtype="int16",
            ) as stream:
                while not stop.is_set() and time.monotonic() < deadline:
                    data, overflowed = stream.read(BLOCK_SIZE)
                    if overflowed:
                        logger.debug("Recognizer input overflowed")
                    if recognizer.AcceptWaveform(bytes(data)):
                        text = json.loads(recognizer.Result()).get("text", "").strip()
                        if text:
                            return text
        except (sd.PortAudioError, OSError) as e:
            reason = permission_reason(e)
            if reason is not None:
                raise MicrophonePermissionError(reason, original_error=e) from e
            raise RecognitionError(f"Recognizer stream failed: {e}", original_error=e) from e

        # Flush whatever was said right before the deadline
        text = json.loads(recognizer.FinalResult()).get("text", "").strip()
        if text:
            return text
        raise RecognitionError("No speech recognized")

    async def recognize(self, timeout_ms: int) -> str:
        """Return the first final transcript heard within ``timeout_ms``.

        Raises:
            RecognitionError: If nothing was recognized or the engine failed
            MicrophonePermissionError: If the microphone cannot be opened
        """
        stop = threading.Event()
        deadline = time.monotonic() + timeout_ms / 1000
        try:
            return await asyncio.to_thread(self._listen_blocking, deadline, stop)
        except asyncio.CancelledError:
            stop.set()
            raise
