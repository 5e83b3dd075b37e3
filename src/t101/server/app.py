"""FastAPI application factory.

All server state lives on one ``AppContext`` stored at ``app.state.context``,
so tests can build an app around fake providers without touching globals.
"""

import logging
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from .. import __version__
from ..cache import SpeechCache, get_cache_dir
from ..config import T101Config, load_config
from ..errors import ProviderError
from ..providers.base import TTSProvider
from ..providers.chat import ChatProvider
from ..providers.elevenlabs import ElevenLabsProvider
from ..providers.whisper import WhisperTranscriber
from ..tts.pipeline import TTSPipeline
from .errors import ErrorLogger, register_exception_handlers
from .rate_limit import RateLimiter
from .routes import router

logger = logging.getLogger(__name__)

SESSION_COOKIE = "t101_session"


@dataclass
class AppContext:
    """Everything the routes need, built once per app."""

    config: T101Config
    cache: SpeechCache
    tts_provider: TTSProvider | None
    transcriber: WhisperTranscriber | None
    chat: ChatProvider | None
    error_logger: ErrorLogger
    rate_limiters: dict[str, RateLimiter]
    started_at: float = field(default_factory=time.time)

    @property
    def pipeline(self) -> TTSPipeline:
        return TTSPipeline(cache=self.cache, provider=self.tts_provider)


def _build_providers(
    config: T101Config,
) -> tuple[TTSProvider | None, WhisperTranscriber | None, ChatProvider | None]:
    providers = config.providers
    tts = transcriber = chat = None

    if providers.elevenlabs_api_key:
        try:
            tts = ElevenLabsProvider(
                api_key=providers.elevenlabs_api_key,
                default_voice=providers.default_voice,
                default_model=providers.tts_model,
            )
        except ProviderError as e:
            logger.error(f"ElevenLabs provider disabled: {e}")
    else:
        logger.warning("ELEVEN_LABS_API_KEY not set, /api/tts will return 503")

    if providers.openai_api_key:
        transcriber = WhisperTranscriber(
            api_key=providers.openai_api_key,
            model=providers.whisper_model,
            language=providers.whisper_language,
        )
        chat = ChatProvider(api_key=providers.openai_api_key, model=providers.chat_model)
    else:
        logger.warning("OPENAI_API_KEY not set, transcription and chat will return 503")

    return tts, transcriber, chat


def build_context(config: T101Config) -> AppContext:
    """Create the cache, providers and rate limiters for a config."""
    tts, transcriber, chat = _build_providers(config)
    limits = config.rate_limits
    return AppContext(
        config=config,
        cache=SpeechCache(get_cache_dir(config.paths.cache_dir)),
        tts_provider=tts,
        transcriber=transcriber,
        chat=chat,
        error_logger=ErrorLogger(config.paths.log_dir),
        rate_limiters={
            "api": RateLimiter(limits.api),
            "speech": RateLimiter(limits.speech),
            "recognition": RateLimiter(limits.recognition),
        },
    )


def create_app(config: T101Config | None = None, context: AppContext | None = None) -> FastAPI:
    """Build the FastAPI app.

    Args:
        config: Configuration, defaults to ``load_config()``
        context: Pre-built context, mainly for tests
    """
    if context is None:
        context = build_context(config or load_config())
    config = context.config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        server = config.server
        logger.info(
            f"T-101 server starting on {server.host}:{server.port} ({server.environment})"
        )
        logger.info(f"Speech cache at {context.cache.cache_dir}")
        yield
        logger.info("T-101 server shutting down")

    app = FastAPI(title="T-101 AI Terminal", version=__version__, lifespan=lifespan)
    app.state.context = context

    @app.middleware("http")
    async def request_context(request: Request, call_next):  # type: ignore[no-untyped-def]
        request.state.request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        if "sid" not in request.session:
            request.session["sid"] = uuid.uuid4().hex

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Request-Id"] = request.state.request_id
        for name, value in getattr(request.state, "rate_limit_headers", {}).items():
            response.headers.setdefault(name, value)
        logger.debug(
            f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms"
        )
        return response

    app.add_middleware(
        SessionMiddleware,
        secret_key=config.server.session_secret,
        session_cookie=SESSION_COOKIE,
        https_only=config.server.is_production,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.server.cors_origins),
        allow_credentials="*" not in config.server.cors_origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key", "X-Session-Id"],
        expose_headers=[
            "X-Cache",
            "X-Request-Id",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Retry-After",
        ],
    )

    register_exception_handlers(app)
    app.include_router(router)
    return app
