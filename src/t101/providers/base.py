"""Abstract base class for text-to-speech providers.

This module defines the interface that all TTS providers must implement,
ensuring consistent behavior across the remote and on-device engines.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from ..tts.models import VoiceInfo, VoiceSettings


class TTSProvider(ABC):
    """Abstract base class for text-to-speech providers.

    All TTS providers must inherit from this class and implement
    the required methods for synthesizing speech and listing voices.
    """

    name: str = "base"

    @abstractmethod
    async def synthesize(
        self,
        text: str,
        voice: str | None = None,
        model_id: str | None = None,
        settings: VoiceSettings | None = None,
    ) -> bytes:
        """Convert text to audio bytes.

        Args:
            text: The text to convert to speech
            voice: Voice ID or name to use for synthesis
            model_id: Provider model, where the provider has several
            settings: Stability/similarity settings, where supported

        Returns:
            Audio data as bytes (MP3 or WAV format)

        Raises:
            Exception: If synthesis fails
        """

    @abstractmethod
    async def list_voices(self) -> list[VoiceInfo]:
        """Return available voices for this provider.

        Raises:
            Exception: If voice listing fails
        """

    async def stream(
        self,
        text: str,
        voice: str | None = None,
        model_id: str | None = None,
        settings: VoiceSettings | None = None,
    ) -> AsyncIterator[bytes]:
        """Return audio as an async iterator of chunks.

        Upstream errors are raised here, before the first chunk is handed
        out. Providers without a streaming API yield the whole clip once.
        """
        audio = await self.synthesize(text, voice=voice, model_id=model_id, settings=settings)
        return _single_chunk(audio)


async def _single_chunk(audio: bytes) -> AsyncIterator[bytes]:
    yield audio
