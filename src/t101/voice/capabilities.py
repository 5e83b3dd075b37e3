"""One-time detection of what voice hardware and engines are usable."""

import importlib.util
import logging
from dataclasses import dataclass
from typing import Protocol

from ..config import ClientConfig
from .recognizer import VoskRecognizer
from .recorder import Recording, SoundDeviceRecorder

logger = logging.getLogger(__name__)


class Recognizer(Protocol):
    async def recognize(self, timeout_ms: int) -> str: ...


class Recorder(Protocol):
    async def record(self, max_duration_ms: int) -> Recording: ...


@dataclass(frozen=True)
class VoiceCapabilities:
    """Voice input engines available on this machine.

    Either field may be None when the engine is missing.
    """

    recognizer: Recognizer | None = None
    recorder: Recorder | None = None

    @property
    def any_available(self) -> bool:
        return self.recognizer is not None or self.recorder is not None


def _module_available(name: str) -> bool:
    return importlib.util.find_spec(name) is not None


def detect_capabilities(config: ClientConfig) -> VoiceCapabilities:
    """Detect the recognizer and recorder once at startup.

    The recorder needs the ``sounddevice`` package. The recognizer also needs
    ``vosk`` and a model directory.
    """
    recorder = None
    recognizer = None

    if _module_available("sounddevice"):
        recorder = SoundDeviceRecorder()
        model_path = config.vosk_model_path
        if model_path is None:
            logger.debug("VOSK_MODEL_PATH not set, on-device recognition disabled")
        elif not _module_available("vosk"):
            logger.debug("vosk not installed, on-device recognition disabled")
        elif not model_path.is_dir():
            logger.warning(f"Vosk model directory not found: {model_path}")
        else:
            recognizer = VoskRecognizer(model_path)
    else:
        logger.debug("sounddevice not installed, microphone input disabled")

    capabilities = VoiceCapabilities(recognizer=recognizer, recorder=recorder)
    logger.info(
        f"Voice capabilities: recognizer={'vosk' if recognizer else 'none'}, "
        f"recorder={'sounddevice' if recorder else 'none'}"
    )
    return capabilities
