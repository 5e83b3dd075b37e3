"""Unit tests for the backend HTTP client and the terminal session."""

import json
import sys
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from t101.client.api_client import APIClientError, TerminalAPIClient
from t101.client.session import TerminalSession
from t101.tts.models import SpeechOptions
from t101.voice.capabilities import VoiceCapabilities
from t101.voice.errors import VoiceInputUnavailable
from test_helpers import RecordingPlayer, make_config


def client_with(handler, api_key: str | None = None) -> TerminalAPIClient:
    return TerminalAPIClient(
        "http://t101.test/", api_key=api_key, transport=httpx.MockTransport(handler)
    )


class TestTerminalAPIClient:
    @pytest.mark.asyncio
    async def test_synthesize_posts_camel_case_body(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            seen["key"] = request.headers.get("X-API-Key")
            return httpx.Response(200, content=b"mp3", headers={"X-Cache": "MISS"})

        async with client_with(handler, api_key="k") as client:
            audio = await client.synthesize(
                "Hello", SpeechOptions(voice_id="v1", similarity_boost=0.9)
            )

        assert audio == b"mp3"
        assert seen == {
            "path": "/api/tts",
            "body": {"text": "Hello", "voiceId": "v1", "similarityBoost": 0.9},
            "key": "k",
        }

    @pytest.mark.asyncio
    async def test_transcribe_uploads_multipart(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/transcribe"
            assert b'filename="recording.wav"' in request.content
            return httpx.Response(200, json={"success": True, "text": "hasta la vista"})

        async with client_with(handler) as client:
            assert await client.transcribe(b"RIFFdata") == "hasta la vista"

    @pytest.mark.asyncio
    async def test_chat_returns_response_field(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content) == {"message": "Who are you?"}
            return httpx.Response(200, json={"success": True, "response": "I am T-101."})

        async with client_with(handler) as client:
            assert await client.chat("Who are you?") == "I am T-101."

    @pytest.mark.asyncio
    async def test_error_envelope_becomes_exception(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                429,
                json={
                    "success": False,
                    "error": {"message": "rate limit exceeded, retry later", "code": "RATE_LIMIT_EXCEEDED", "status": 429},
                },
            )

        async with client_with(handler) as client:
            with pytest.raises(APIClientError) as exc_info:
                await client.chat("hi")

        assert exc_info.value.status_code == 429
        assert exc_info.value.code == "RATE_LIMIT_EXCEEDED"
        assert str(exc_info.value) == "rate limit exceeded, retry later"

    @pytest.mark.asyncio
    async def test_non_json_error_uses_body_text(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway from proxy")

        async with client_with(handler) as client:
            with pytest.raises(APIClientError, match="Bad Gateway from proxy"):
                await client.health()

    @pytest.mark.asyncio
    async def test_unreachable_server(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        async with client_with(handler) as client:
            with pytest.raises(APIClientError, match="Cannot reach server") as exc_info:
                await client.voices()

        assert exc_info.value.status_code is None


class TestTerminalSession:
    def make_session(self, tmp_path, handler, native=None) -> tuple[TerminalSession, RecordingPlayer]:
        player = RecordingPlayer()
        with patch("t101.client.session._native_synthesizer", return_value=native):
            session = TerminalSession(
                config=make_config(tmp_path).client,
                client=client_with(handler),
                player=player,
                capabilities=VoiceCapabilities(),
            )
        return session, player

    @pytest.mark.asyncio
    async def test_respond_chats_then_speaks_reply(self, tmp_path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/chat":
                return httpx.Response(200, json={"response": "Affirmative."})
            return httpx.Response(200, content=b"reply-audio")

        session, player = self.make_session(tmp_path, handler)
        async with session:
            reply = await session.respond("Status?")

        assert reply == "Affirmative."
        assert player.played == [b"reply-audio"]

    @pytest.mark.asyncio
    async def test_speech_failure_does_not_raise(self, tmp_path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"success": False, "error": {"message": "boom"}})

        session, player = self.make_session(tmp_path, handler)
        async with session:
            await session.speak("This will not play")

        assert player.played == []

    @pytest.mark.asyncio
    async def test_listen_without_capabilities_raises(self, tmp_path) -> None:
        session, _ = self.make_session(tmp_path, lambda request: httpx.Response(200))
        async with session:
            with pytest.raises(VoiceInputUnavailable):
                await session.listen()
