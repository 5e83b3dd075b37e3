"""Configuration management for t101.

Loads configuration from an optional TOML file (``~/.config/t101/config.toml``
or the path in ``T101_CONFIG``) with environment variables taking priority.
"""

import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_DIR = Path.home() / ".config" / "t101"
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_VOICE_ID = "pNInz6obpgDQGcFmaJgB"
DEFAULT_TTS_MODEL = "eleven_monolingual_v1"

# Variables that must be set when T101_ENV=production
DEV_SESSION_SECRET = "terminator-t101-dev-secret"


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server configuration."""

    host: str
    port: int
    cors_origins: tuple[str, ...]
    session_secret: str
    api_key: str | None
    environment: str
    log_level: str

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@dataclass(frozen=True)
class ProviderConfig:
    """Upstream provider configuration."""

    openai_api_key: str | None
    elevenlabs_api_key: str | None
    default_voice: str
    tts_model: str
    stability: float
    similarity_boost: float
    whisper_model: str
    whisper_language: str | None
    chat_model: str


@dataclass(frozen=True)
class RateLimitRule:
    """A fixed request budget per window."""

    window_ms: int
    max_requests: int


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limits per endpoint class."""

    api: RateLimitRule
    speech: RateLimitRule
    recognition: RateLimitRule


@dataclass(frozen=True)
class PathsConfig:
    """On-disk locations for cache and logs."""

    cache_dir: Path
    log_dir: Path


@dataclass(frozen=True)
class ClientConfig:
    """Terminal client configuration."""

    server_url: str
    api_key: str | None
    max_recording_ms: int
    vosk_model_path: Path | None


@dataclass(frozen=True)
class T101Config:
    """Top-level t101 configuration."""

    server: ServerConfig
    providers: ProviderConfig
    rate_limits: RateLimitConfig
    paths: PathsConfig
    client: ClientConfig
    source: Path | None = field(default=None, compare=False)


_cached_config: T101Config | None = None


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "rb") as f:
        return tomllib.load(f)


def _env(name: str, section: dict[str, Any], key: str, default: Any = None) -> Any:
    value = os.getenv(name)
    if value is not None and value != "":
        return value
    return section.get(key, default)


def _rule(
    data: dict[str, Any], name: str, default_window: int, default_max: int
) -> RateLimitRule:
    section = data.get(name, {})
    prefix = f"RATE_LIMIT_{name.upper()}"
    return RateLimitRule(
        window_ms=int(_env(f"{prefix}_WINDOW", section, "window_ms", default_window)),
        max_requests=int(_env(f"{prefix}_MAX", section, "max", default_max)),
    )


def load_config(path: Path | None = None) -> T101Config:
    """Load configuration from the config file with env var overrides.

    Args:
        path: Explicit config file. Defaults to ``T101_CONFIG`` or
            ``~/.config/t101/config.toml``. A missing file is not an error.

    Returns:
        Loaded T101Config, cached for subsequent calls.

    Raises:
        ValueError: If a numeric setting cannot be parsed.
    """
    global _cached_config
    if _cached_config is not None and path is None:
        return _cached_config

    config_path = path or Path(os.getenv("T101_CONFIG", str(CONFIG_PATH)))
    data = _read_file(config_path)

    server = data.get("server", {})
    providers = data.get("providers", {})
    limits = data.get("rate_limits", {})
    paths = data.get("paths", {})
    client = data.get("client", {})

    origins = _env("CORS_ORIGINS", server, "cors_origins", "*")
    if isinstance(origins, str):
        origins = [o.strip() for o in origins.split(",") if o.strip()]

    language = _env("WHISPER_LANGUAGE", providers, "whisper_language", "en")
    vosk_path = _env("VOSK_MODEL_PATH", client, "vosk_model_path")

    config = T101Config(
        server=ServerConfig(
            host=_env("HOST", server, "host", "127.0.0.1"),
            port=int(_env("PORT", server, "port", 3000)),
            cors_origins=tuple(origins),
            session_secret=_env(
                "SESSION_SECRET", server, "session_secret", DEV_SESSION_SECRET
            ),
            api_key=_env("API_KEY", server, "api_key") or None,
            environment=_env("T101_ENV", server, "environment", "development"),
            log_level=str(_env("LOG_LEVEL", server, "log_level", "INFO")).upper(),
        ),
        providers=ProviderConfig(
            openai_api_key=_env("OPENAI_API_KEY", providers, "openai_api_key") or None,
            elevenlabs_api_key=_env(
                "ELEVEN_LABS_API_KEY", providers, "elevenlabs_api_key"
            )
            or None,
            default_voice=_env(
                "ELEVEN_LABS_DEFAULT_VOICE", providers, "default_voice", DEFAULT_VOICE_ID
            ),
            tts_model=_env(
                "ELEVEN_LABS_MODEL_ID", providers, "tts_model", DEFAULT_TTS_MODEL
            ),
            stability=float(
                _env("ELEVEN_LABS_STABILITY", providers, "stability", 0.5)
            ),
            similarity_boost=float(
                _env("ELEVEN_LABS_SIMILARITY_BOOST", providers, "similarity_boost", 0.75)
            ),
            whisper_model=_env("WHISPER_MODEL", providers, "whisper_model", "whisper-1"),
            whisper_language=language or None,
            chat_model=_env("OPENAI_CHAT_MODEL", providers, "chat_model", "gpt-4o-mini"),
        ),
        rate_limits=RateLimitConfig(
            api=_rule(limits, "api", 60_000, 60),
            speech=_rule(limits, "speech", 60_000, 10),
            recognition=_rule(limits, "recognition", 60_000, 20),
        ),
        paths=PathsConfig(
            cache_dir=Path(
                _env("T101_CACHE_DIR", paths, "cache_dir", Path.home() / ".cache" / "t101")
            ).expanduser(),
            log_dir=Path(
                _env("T101_LOG_DIR", paths, "log_dir", Path.home() / ".cache" / "t101" / "logs")
            ).expanduser(),
        ),
        client=ClientConfig(
            server_url=_env(
                "T101_SERVER_URL", client, "server_url", "http://127.0.0.1:3000"
            ).rstrip("/"),
            api_key=_env("API_KEY", client, "api_key") or None,
            max_recording_ms=int(
                _env("T101_MAX_RECORDING_MS", client, "max_recording_ms", 10_000)
            ),
            vosk_model_path=Path(vosk_path).expanduser() if vosk_path else None,
        ),
        source=config_path if data else None,
    )

    if path is None:
        _cached_config = config
    return config


def reset_config() -> None:
    """Forget the cached configuration so the next load re-reads env vars."""
    global _cached_config
    _cached_config = None


def validate_production(config: T101Config) -> None:
    """Exit when required secrets are missing in production.

    Values may come from the environment or the config file; the
    development session secret does not count as set.

    Raises:
        SystemExit: With code 1 if any required value is unset.
    """
    if not config.server.is_production:
        return

    required = {
        "SESSION_SECRET": config.server.session_secret not in ("", DEV_SESSION_SECRET),
        "OPENAI_API_KEY": bool(config.providers.openai_api_key),
        "ELEVEN_LABS_API_KEY": bool(config.providers.elevenlabs_api_key),
    }
    missing = [name for name, present in required.items() if not present]
    if missing:
        print(
            f"Missing required environment variables: {', '.join(missing)}",
            file=sys.stderr,
        )
        print(
            "Please set these variables in your environment or config file",
            file=sys.stderr,
        )
        raise SystemExit(1)
