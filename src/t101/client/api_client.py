"""HTTP client for the t101 backend."""

import logging
from typing import Any

import httpx

from ..tts.models import SpeechOptions

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


class APIClientError(Exception):
    """Exception raised when a backend call fails.

    Attributes:
        status_code: HTTP status, or None when the server was unreachable
        code: Error code from the server's error envelope, if any
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.original_error = original_error


def _error_from_response(response: httpx.Response) -> APIClientError:
    try:
        body = response.json()
        error = body.get("error", {}) if isinstance(body, dict) else {}
        message = error.get("message") or response.reason_phrase
        code = error.get("code")
    except ValueError:
        message = response.text or response.reason_phrase
        code = None
    return APIClientError(message, status_code=response.status_code, code=code)


class TerminalAPIClient:
    """Async client for the backend proxy routes.

    Example:
        async with TerminalAPIClient("http://127.0.0.1:3000") as client:
            audio = await client.synthesize("Come with me if you want to live.")
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"X-API-Key": api_key} if api_key else {}
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "TerminalAPIClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise APIClientError(
                f"Cannot reach server at {self._client.base_url}: {e}", original_error=e
            ) from e

        if response.is_error:
            error = _error_from_response(response)
            logger.debug(f"{method} {path} failed with {response.status_code}: {error}")
            raise error
        return response

    async def health(self) -> dict[str, Any]:
        response = await self._request("GET", "/api/health")
        return response.json()

    async def voices(self) -> list[dict[str, Any]]:
        response = await self._request("GET", "/api/voices")
        return response.json()["voices"]

    async def synthesize(self, text: str, options: SpeechOptions | None = None) -> bytes:
        """Synthesize speech through ``/api/tts``.

        Returns:
            Audio bytes (MP3)
        """
        payload: dict[str, Any] = {"text": text}
        if options is not None:
            for key, value in (
                ("voiceId", options.voice_id),
                ("modelId", options.model_id),
                ("stability", options.stability),
                ("similarityBoost", options.similarity_boost),
            ):
                if value is not None:
                    payload[key] = value

        response = await self._request("POST", "/api/tts", json=payload)
        logger.debug(f"TTS {response.headers.get('X-Cache', '?')}: {len(response.content)} bytes")
        return response.content

    async def transcribe(
        self,
        audio: bytes,
        filename: str = "recording.wav",
        language: str | None = None,
    ) -> str:
        """Transcribe recorded audio through ``/api/transcribe``."""
        data = {"language": language} if language else None
        response = await self._request(
            "POST", "/api/transcribe", files={"audio": (filename, audio)}, data=data
        )
        return response.json()["text"]

    async def translate(self, audio: bytes, filename: str = "recording.wav") -> str:
        response = await self._request(
            "POST", "/api/translate", files={"audio": (filename, audio)}
        )
        return response.json()["text"]

    async def chat(self, message: str) -> str:
        response = await self._request("POST", "/api/chat", json={"message": message})
        return response.json()["response"]

    async def process_audio(
        self, audio: bytes, filename: str = "recording.wav"
    ) -> dict[str, str]:
        """Transcribe audio and get the persona's reply in one round trip."""
        response = await self._request(
            "POST", "/api/process-audio", files={"audio": (filename, audio)}
        )
        return response.json()

    async def cache_stats(self) -> dict[str, Any]:
        response = await self._request("GET", "/api/speech/cache")
        return response.json()

    async def clear_cache(self) -> dict[str, Any]:
        response = await self._request("DELETE", "/api/speech/cache")
        return response.json()
