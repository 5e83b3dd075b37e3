"""Speech output: the serialized playback queue and its fallback chain."""

from .fallback import AllStrategiesFailedError, first_successful
from .queue import SpeechQueue, SpeechQueueClosedError

__all__ = [
    "AllStrategiesFailedError",
    "SpeechQueue",
    "SpeechQueueClosedError",
    "first_successful",
]
