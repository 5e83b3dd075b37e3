"""Provider clients for the upstream speech and chat services.

The registry maps TTS provider names to their classes so the CLI and the
session can pick an engine at runtime.
"""

from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from .base import TTSProvider

from .chat import ChatProvider
from .elevenlabs import ElevenLabsProvider
from .system import SystemTTSProvider
from .whisper import WhisperTranscriber

__all__ = [
    "ChatProvider",
    "ElevenLabsProvider",
    "ProviderRegistry",
    "SystemTTSProvider",
    "WhisperTranscriber",
]


class ProviderRegistry:
    """Registry for managing TTS providers by name."""

    _providers: ClassVar[dict[str, type["TTSProvider"]]] = {}

    @classmethod
    def register(cls, name: str, provider_class: type["TTSProvider"]) -> None:
        """Register a TTS provider under a name."""
        cls._providers[name] = provider_class

    @classmethod
    def get(cls, name: str) -> type["TTSProvider"]:
        """Get a provider class by name.

        Raises:
            KeyError: If provider name not found
        """
        if name not in cls._providers:
            available = ", ".join(cls._providers.keys()) if cls._providers else "none"
            raise KeyError(
                f"Provider '{name}' not found. Available providers: {available}"
            )
        return cls._providers[name]

    @classmethod
    def create(cls, name: str, **kwargs: Any) -> "TTSProvider":
        """Instantiate a provider by name with constructor arguments."""
        return cls.get(name)(**kwargs)

    @classmethod
    def names(cls) -> list[str]:
        return list(cls._providers)


ProviderRegistry.register("elevenlabs", ElevenLabsProvider)
ProviderRegistry.register("system", SystemTTSProvider)
