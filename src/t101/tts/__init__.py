"""TTS (Text-to-Speech) package for t101.

Request models and the cached synthesis pipeline used by the server.
"""

from .models import (
    MAX_TEXT_LENGTH,
    SpeechOptions,
    SpeechRequest,
    VoiceInfo,
    VoiceSettings,
)
from .pipeline import SynthesisResult, TTSPipeline

__all__ = [
    "MAX_TEXT_LENGTH",
    "SpeechOptions",
    "SpeechRequest",
    "SynthesisResult",
    "TTSPipeline",
    "VoiceInfo",
    "VoiceSettings",
]
