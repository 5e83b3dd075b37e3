"""OpenAI Whisper speech-to-text provider."""

import logging
import os
from pathlib import PurePath

from openai import AsyncOpenAI

from ..errors import ProviderNotConfiguredError
from .openai_errors import map_openai_error

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = (".mp3", ".mp4", ".mpeg", ".mpga", ".m4a", ".wav", ".webm")
MAX_AUDIO_BYTES = 25 * 1024 * 1024


def is_format_supported(filename: str | None) -> bool:
    """Check whether Whisper accepts the file's extension."""
    if not filename:
        return False
    return PurePath(filename).suffix.lower() in SUPPORTED_FORMATS


def is_within_size_limit(size: int) -> bool:
    """Check whether a payload fits Whisper's 25MB upload limit."""
    return size <= MAX_AUDIO_BYTES


class WhisperTranscriber:
    """Transcribes and translates audio through the OpenAI audio API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "whisper-1",
        language: str | None = "en",
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize the transcriber.

        Args:
            api_key: OpenAI API key, defaults to OPENAI_API_KEY
            model: Whisper model name
            language: Default spoken language hint, None to auto-detect
            client: Pre-built client, mainly for tests

        Raises:
            ProviderNotConfiguredError: If no API key is available
        """
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        if client is None and not self._api_key:
            raise ProviderNotConfiguredError(
                "OpenAI API key not configured. Set OPENAI_API_KEY."
            )
        self._client = client or AsyncOpenAI(api_key=self._api_key)
        self.model = model
        self.language = language

    async def transcribe(
        self,
        audio: bytes,
        filename: str = "recording.wav",
        language: str | None = None,
        prompt: str | None = None,
        temperature: float | None = None,
    ) -> str:
        """Transcribe audio to text.

        Args:
            audio: Encoded audio payload
            filename: Name sent with the upload; its extension tells
                Whisper the container format
            language: Overrides the default language hint
            prompt: Optional context to steer the transcription
            temperature: Sampling temperature

        Returns:
            Transcribed text

        Raises:
            ProviderAuthError: If the API key is rejected
            ProviderAPIError: If the API answers with an error
            ProviderConnectionError: If OpenAI cannot be reached
        """
        kwargs: dict = {"model": self.model, "file": (filename, audio)}
        if language or self.language:
            kwargs["language"] = language or self.language
        if prompt:
            kwargs["prompt"] = prompt
        if temperature is not None:
            kwargs["temperature"] = temperature

        try:
            response = await self._client.audio.transcriptions.create(**kwargs)
        except Exception as e:
            raise map_openai_error(e, "transcribe audio") from e

        logger.debug(f"Transcribed {len(audio)} bytes from {filename}")
        return response.text

    async def translate(
        self,
        audio: bytes,
        filename: str = "recording.wav",
        prompt: str | None = None,
        temperature: float | None = None,
    ) -> str:
        """Translate spoken audio into English text."""
        kwargs: dict = {"model": self.model, "file": (filename, audio)}
        if prompt:
            kwargs["prompt"] = prompt
        if temperature is not None:
            kwargs["temperature"] = temperature

        try:
            response = await self._client.audio.translations.create(**kwargs)
        except Exception as e:
            raise map_openai_error(e, "translate audio") from e

        return response.text
