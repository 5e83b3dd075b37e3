"""ElevenLabs text-to-speech provider implementation."""

import asyncio
import logging
import os
from collections.abc import AsyncIterator, Iterator

import httpx
from elevenlabs.client import ElevenLabs

from ..config import DEFAULT_TTS_MODEL, DEFAULT_VOICE_ID
from ..errors import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderNotConfiguredError,
)
from ..tts.models import VoiceInfo, VoiceSettings
from .base import TTSProvider

logger = logging.getLogger(__name__)


def _map_error(e: Exception, action: str) -> Exception:
    """Translate an SDK failure into a provider error."""
    status = getattr(e, "status_code", None)
    if status == 401 or "unauthorized" in str(e).lower():
        return ProviderAuthError(f"ElevenLabs authentication failed: {e}", e)
    if status == 429:
        return ProviderAPIError(f"ElevenLabs rate limit exceeded: {e}", 429, e)
    if status is not None:
        body = getattr(e, "body", None)
        detail = body.get("detail") if isinstance(body, dict) else None
        message = detail if isinstance(detail, str) else str(detail or e)
        return ProviderAPIError(f"ElevenLabs API error: {message}", status, e)
    if isinstance(e, httpx.HTTPError):
        return ProviderConnectionError(f"ElevenLabs unreachable: {e}", e)
    return ProviderAPIError(f"Failed to {action}: {e}", None, e)


class ElevenLabsProvider(TTSProvider):
    """ElevenLabs TTS provider implementation.

    Provides methods to synthesize speech from text and list voices
    using the ElevenLabs API.
    """

    name = "elevenlabs"

    def __init__(
        self,
        api_key: str | None = None,
        default_voice: str = DEFAULT_VOICE_ID,
        default_model: str = DEFAULT_TTS_MODEL,
    ) -> None:
        """Initialize ElevenLabs provider.

        Args:
            api_key: ElevenLabs API key. If not provided, reads from
                    ELEVEN_LABS_API_KEY environment variable.
            default_voice: Voice used when a request names none.
            default_model: Model used when a request names none.

        Raises:
            ProviderNotConfiguredError: If API key is not provided.
            ProviderAuthError: If the client cannot be created.
        """
        self._api_key = api_key or os.getenv("ELEVEN_LABS_API_KEY")
        if not self._api_key:
            raise ProviderNotConfiguredError(
                "ElevenLabs API key not configured. Set ELEVEN_LABS_API_KEY."
            )

        try:
            self._client = ElevenLabs(api_key=self._api_key)
        except Exception as e:
            raise ProviderAuthError(
                f"Failed to initialize ElevenLabs client: {e}", e
            ) from e

        self.default_voice = default_voice
        self.default_model = default_model
        # Cache for voices to avoid repeated API calls
        self._voices_cache: list[VoiceInfo] | None = None

    async def synthesize(
        self,
        text: str,
        voice: str | None = None,
        model_id: str | None = None,
        settings: VoiceSettings | None = None,
    ) -> bytes:
        """Convert text to speech audio bytes.

        Args:
            text: Text to convert to speech
            voice: Voice ID to use for synthesis
            model_id: ElevenLabs model ID to use
            settings: Stability and similarity boost

        Returns:
            Audio data as bytes (MP3 format)

        Raises:
            ProviderAPIError: If API call fails
            ProviderAuthError: If authentication fails
            ValueError: If text is empty
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        voice_id = voice or self.default_voice
        model = model_id or self.default_model
        voice_settings = settings or VoiceSettings()

        # Run synchronous ElevenLabs client in thread to avoid blocking event loop
        def _sync_convert() -> bytes:
            audio_generator = self._client.text_to_speech.convert(
                text=text,
                voice_id=voice_id,
                model_id=model,
                voice_settings=voice_settings.to_dict(),
            )
            # Collect all audio chunks
            return b"".join(audio_generator)

        try:
            audio_bytes = await asyncio.to_thread(_sync_convert)
        except Exception as e:
            raise _map_error(e, "synthesize speech") from e

        if not audio_bytes:
            raise ProviderAPIError("No audio data received from API")

        logger.debug(
            f"ElevenLabs returned {len(audio_bytes)} bytes for voice {voice_id}"
        )
        return audio_bytes

    async def stream(
        self,
        text: str,
        voice: str | None = None,
        model_id: str | None = None,
        settings: VoiceSettings | None = None,
    ) -> AsyncIterator[bytes]:
        """Stream synthesized audio chunk by chunk for longer texts.

        The first chunk is fetched before returning, so authentication and
        API errors surface here rather than mid-response.

        Raises:
            ProviderAPIError: If API call fails or returns no audio
            ProviderAuthError: If authentication fails
            ValueError: If text is empty
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        voice_id = voice or self.default_voice
        model = model_id or self.default_model
        voice_settings = settings or VoiceSettings()

        def _sync_open() -> tuple[Iterator[bytes], bytes]:
            chunks = iter(
                self._client.text_to_speech.stream(
                    text=text,
                    voice_id=voice_id,
                    model_id=model,
                    voice_settings=voice_settings.to_dict(),
                )
            )
            return chunks, next(chunks, b"")

        try:
            chunks, first = await asyncio.to_thread(_sync_open)
        except Exception as e:
            raise _map_error(e, "stream speech") from e

        if not first:
            raise ProviderAPIError("No audio data received from API")

        logger.debug(f"ElevenLabs streaming started for voice {voice_id}")
        return self._drain(first, chunks)

    async def _drain(self, first: bytes, chunks: Iterator[bytes]) -> AsyncIterator[bytes]:
        yield first
        while True:
            try:
                chunk = await asyncio.to_thread(next, chunks, None)
            except Exception as e:
                raise _map_error(e, "stream speech") from e
            if chunk is None:
                return
            if chunk:
                yield chunk

    async def list_voices(self) -> list[VoiceInfo]:
        """Get list of available voices.

        Results are cached after first call to avoid repeated API requests.

        Raises:
            ProviderAPIError: If API call fails
            ProviderAuthError: If authentication fails
        """
        if self._voices_cache is not None:
            return self._voices_cache

        def _sync_get_voices() -> list[VoiceInfo]:
            response = self._client.voices.get_all()
            voices = []
            for voice in response.voices:
                category = getattr(voice, "category", None)
                voices.append(
                    VoiceInfo(
                        voice_id=voice.voice_id,
                        name=voice.name or voice.voice_id,
                        category=str(category) if category else None,
                        description=getattr(voice, "description", None),
                    )
                )
            return voices

        try:
            voices = await asyncio.to_thread(_sync_get_voices)
        except Exception as e:
            raise _map_error(e, "list voices") from e

        self._voices_cache = voices
        return voices
