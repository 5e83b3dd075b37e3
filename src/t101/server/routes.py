"""HTTP routes for the speech, recognition and chat proxy."""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import Response, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from .. import __version__
from ..errors import ProviderNotConfiguredError, ValidationError
from ..providers.whisper import (
    MAX_AUDIO_BYTES,
    SUPPORTED_FORMATS,
    is_format_supported,
    is_within_size_limit,
)
from ..tts.models import SpeechRequest, VoiceSettings
from .auth import require_api_key
from .rate_limit import RateLimitDependency, session_or_api_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

api_limit = RateLimitDependency("api")
speech_limit = RateLimitDependency("speech")
recognition_limit = RateLimitDependency("recognition", key_func=session_or_api_key)


class TTSBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str | None = None
    voice_id: str | None = Field(default=None, alias="voiceId")
    model_id: str | None = Field(default=None, alias="modelId")
    stability: float | None = None
    similarity_boost: float | None = Field(default=None, alias="similarityBoost")


class ChatBody(BaseModel):
    message: str | None = None


def _context(request: Request) -> Any:
    return request.app.state.context


def _remember_body(request: Request, body: BaseModel) -> None:
    # Kept for the error log, which redacts it
    request.state.body = body.model_dump(by_alias=True)


def _speech_request(context: Any, body: TTSBody) -> SpeechRequest:
    """Fill defaults and validate a TTS body."""
    providers = context.config.providers
    try:
        settings = VoiceSettings(
            stability=providers.stability if body.stability is None else body.stability,
            similarity_boost=(
                providers.similarity_boost
                if body.similarity_boost is None
                else body.similarity_boost
            ),
        )
        return SpeechRequest(
            text=body.text or "",
            voice_id=body.voice_id or providers.default_voice,
            model_id=body.model_id or providers.tts_model,
            settings=settings,
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e


async def _read_audio(upload: UploadFile | None) -> tuple[bytes, str]:
    """Validate an uploaded audio file before anything is sent upstream."""
    if upload is None:
        raise ValidationError("No audio file provided")

    filename = upload.filename or ""
    if not is_format_supported(filename):
        raise ValidationError(
            f"Unsupported audio format. Supported formats: {', '.join(SUPPORTED_FORMATS)}"
        )
    if upload.size is not None and not is_within_size_limit(upload.size):
        raise ValidationError(f"Audio file exceeds {MAX_AUDIO_BYTES // (1024 * 1024)}MB limit")

    audio = await upload.read()
    if not is_within_size_limit(len(audio)):
        raise ValidationError(f"Audio file exceeds {MAX_AUDIO_BYTES // (1024 * 1024)}MB limit")
    if not audio:
        raise ValidationError("Audio file is empty")
    return audio, filename


def _require(provider: Any, name: str) -> Any:
    if provider is None:
        raise ProviderNotConfiguredError(f"{name} API key not configured")
    return provider


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    context = _context(request)
    return {
        "status": "online",
        "message": "T-101 Terminal systems operational",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "environment": context.config.server.environment,
        "uptime": round(time.time() - context.started_at, 1),
        "services": {
            "elevenlabs": context.tts_provider is not None,
            "openai": context.transcriber is not None,
        },
        "speechCache": context.cache.stats().to_dict(),
    }


@router.get("/voices", dependencies=[Depends(require_api_key), Depends(api_limit)])
async def voices(request: Request) -> dict[str, Any]:
    provider = _require(_context(request).tts_provider, "ElevenLabs")
    return {"voices": [voice.to_dict() for voice in await provider.list_voices()]}


@router.post("/tts", dependencies=[Depends(require_api_key), Depends(speech_limit)])
async def text_to_speech(body: TTSBody, request: Request) -> Response:
    _remember_body(request, body)
    context = _context(request)
    speech = _speech_request(context, body)

    result = await context.pipeline.synthesize(speech)
    return Response(
        content=result.audio,
        media_type="audio/mpeg",
        headers={
            "X-Cache": "HIT" if result.cached else "MISS",
            "Content-Length": str(len(result.audio)),
        },
    )


@router.post("/speech/stream", dependencies=[Depends(require_api_key), Depends(speech_limit)])
async def stream_speech(body: TTSBody, request: Request) -> StreamingResponse:
    """Stream audio for longer texts. Streamed speech is never cached."""
    _remember_body(request, body)
    context = _context(request)
    speech = _speech_request(context, body)
    provider = _require(context.tts_provider, "ElevenLabs")

    chunks = await provider.stream(
        speech.text,
        voice=speech.voice_id,
        model_id=speech.model_id,
        settings=speech.settings,
    )
    return StreamingResponse(chunks, media_type="audio/mpeg")


@router.post(
    "/transcribe", dependencies=[Depends(require_api_key), Depends(recognition_limit)]
)
async def transcribe(
    request: Request,
    audio: UploadFile | None = File(default=None),
    file: UploadFile | None = File(default=None),
    language: str | None = Form(default=None),
    prompt: str | None = Form(default=None),
    temperature: float | None = Form(default=None),
) -> dict[str, Any]:
    transcriber = _require(_context(request).transcriber, "OpenAI")
    data, filename = await _read_audio(audio or file)

    text = await transcriber.transcribe(
        data, filename=filename, language=language, prompt=prompt, temperature=temperature
    )
    return {"success": True, "text": text}


@router.post(
    "/translate", dependencies=[Depends(require_api_key), Depends(recognition_limit)]
)
async def translate(
    request: Request,
    audio: UploadFile | None = File(default=None),
    file: UploadFile | None = File(default=None),
    prompt: str | None = Form(default=None),
) -> dict[str, Any]:
    transcriber = _require(_context(request).transcriber, "OpenAI")
    data, filename = await _read_audio(audio or file)

    text = await transcriber.translate(data, filename=filename, prompt=prompt)
    return {"success": True, "text": text}


@router.post("/chat", dependencies=[Depends(require_api_key), Depends(api_limit)])
async def chat(body: ChatBody, request: Request) -> dict[str, Any]:
    _remember_body(request, body)
    if not body.message or not body.message.strip():
        raise ValidationError("Message is required")
    provider = _require(_context(request).chat, "OpenAI")

    reply = await provider.reply(body.message)
    return {"success": True, "response": reply}


@router.post(
    "/process-audio", dependencies=[Depends(require_api_key), Depends(recognition_limit)]
)
async def process_audio(
    request: Request,
    audio: UploadFile | None = File(default=None),
    file: UploadFile | None = File(default=None),
) -> dict[str, Any]:
    """Transcribe an utterance and answer it in one call."""
    context = _context(request)
    transcriber = _require(context.transcriber, "OpenAI")
    chat_provider = _require(context.chat, "OpenAI")
    data, filename = await _read_audio(audio or file)

    text = await transcriber.transcribe(data, filename=filename)
    if not text.strip():
        return {"success": True, "text": "", "response": ""}
    reply = await chat_provider.reply(text)
    return {"success": True, "text": text, "response": reply}


@router.get("/speech/cache", dependencies=[Depends(require_api_key), Depends(api_limit)])
async def cache_stats(request: Request) -> dict[str, Any]:
    return {"success": True, **_context(request).cache.stats().to_dict()}


@router.delete(
    "/speech/cache", dependencies=[Depends(require_api_key), Depends(api_limit)]
)
async def clear_cache(request: Request) -> dict[str, Any]:
    removed = _context(request).cache.clear()
    return {"success": True, "removed": removed, "message": "Speech cache cleared"}
