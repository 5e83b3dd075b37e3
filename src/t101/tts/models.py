"""TTS data models with validation."""

from dataclasses import asdict, dataclass, field
from typing import Any

MAX_TEXT_LENGTH = 5000


@dataclass
class VoiceInfo:
    """Information about an available voice.

    Args:
        voice_id: Unique identifier for the voice
        name: Human-readable name of the voice
        category: Optional voice category (e.g., "premade", "cloned")
        description: Optional voice description
    """

    voice_id: str
    name: str
    category: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate voice information."""
        if not self.voice_id or not self.voice_id.strip():
            raise ValueError("voice_id cannot be empty")
        if not self.name or not self.name.strip():
            raise ValueError("name cannot be empty")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class VoiceSettings:
    """Voice generation settings.

    Args:
        stability: Voice stability (0.0-1.0)
        similarity_boost: Voice similarity boost (0.0-1.0)
    """

    stability: float = 0.5
    similarity_boost: float = 0.75

    def __post_init__(self) -> None:
        """Validate voice settings."""
        if not 0.0 <= self.stability <= 1.0:
            raise ValueError("stability must be between 0.0 and 1.0")
        if not 0.0 <= self.similarity_boost <= 1.0:
            raise ValueError("similarity_boost must be between 0.0 and 1.0")

    def to_dict(self) -> dict[str, float]:
        return {
            "stability": self.stability,
            "similarity_boost": self.similarity_boost,
        }


@dataclass
class SpeechOptions:
    """Per-utterance options for the speech queue.

    Unset voice fields fall back to whatever the synthesizer is configured
    with. ``silent`` skips playback entirely and ``use_native`` skips remote
    synthesis and goes straight to the on-device engine.
    """

    voice_id: str | None = None
    model_id: str | None = None
    stability: float | None = None
    similarity_boost: float | None = None
    silent: bool = False
    use_native: bool = False


@dataclass
class SpeechRequest:
    """A normalized text-to-speech request.

    This is what the server synthesizes and what the speech cache keys on.
    """

    text: str
    voice_id: str
    model_id: str
    settings: VoiceSettings = field(default_factory=VoiceSettings)

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise ValueError("Text is required for speech generation")
        if len(self.text) > MAX_TEXT_LENGTH:
            raise ValueError(
                f"Text exceeds maximum length of {MAX_TEXT_LENGTH} characters"
            )

    def cache_fields(self) -> dict[str, Any]:
        """Fields that identify the audio this request produces."""
        return {
            "text": self.text,
            "voiceId": self.voice_id,
            "modelId": self.model_id,
            "stability": self.settings.stability,
            "similarityBoost": self.settings.similarity_boost,
        }
