"""Cached synthesis pipeline.

Coordinates the speech cache and a TTS provider: a request is looked up by
its normalized key first and only sent upstream on a miss.
"""

import logging
from dataclasses import dataclass

from ..cache.storage import SpeechCache, cache_key
from ..errors import ProviderNotConfiguredError
from ..providers.base import TTSProvider
from .models import SpeechRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SynthesisResult:
    """Audio produced for a request and whether it came from cache."""

    audio: bytes
    cached: bool
    key: str


class TTSPipeline:
    """Orchestrates cache lookup, synthesis and cache fill.

    Example:
        pipeline = TTSPipeline(cache=SpeechCache(path), provider=provider)
        result = await pipeline.synthesize(
            SpeechRequest(text="Hasta la vista", voice_id="abc", model_id="m")
        )
        # result.cached is False the first time, True after that
    """

    def __init__(self, cache: SpeechCache | None, provider: TTSProvider | None) -> None:
        """Initialize the pipeline.

        Args:
            cache: Speech cache, or None to always synthesize
            provider: Remote provider, or None when it is not configured
        """
        self.cache = cache
        self.provider = provider

    async def synthesize(self, request: SpeechRequest) -> SynthesisResult:
        """Return audio for a request, from cache when possible.

        Raises:
            ProviderNotConfiguredError: On a cache miss with no provider
            ProviderAuthError: If provider authentication fails
            ProviderAPIError: If the provider call fails
        """
        key = cache_key(request.cache_fields())

        # === CACHE LOOKUP PHASE ===
        if self.cache is not None:
            audio = await self.cache.get(key)
            if audio is not None:
                logger.info(f"Serving cached speech for '{request.text[:50]}'")
                return SynthesisResult(audio=audio, cached=True, key=key)

        # === SYNTHESIS PHASE ===
        if self.provider is None:
            raise ProviderNotConfiguredError("ElevenLabs API key not configured")

        logger.debug(f"Cache miss, calling {self.provider.name} for synthesis")
        audio = await self.provider.synthesize(
            request.text,
            voice=request.voice_id,
            model_id=request.model_id,
            settings=request.settings,
        )

        if self.cache is not None:
            try:
                await self.cache.put(key, audio)
            except OSError as e:
                # Caching is an optimization; the caller still gets audio
                logger.error(f"Failed to cache audio: {e}")

        return SynthesisResult(audio=audio, cached=False, key=key)
