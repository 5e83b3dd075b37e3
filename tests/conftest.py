"""Pytest configuration and fixtures for t101 tests."""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from t101.config import T101Config, reset_config

CONFIG_ENV_VARS = (
    "PORT",
    "HOST",
    "CORS_ORIGINS",
    "SESSION_SECRET",
    "API_KEY",
    "T101_ENV",
    "LOG_LEVEL",
    "OPENAI_API_KEY",
    "ELEVEN_LABS_API_KEY",
    "ELEVEN_LABS_DEFAULT_VOICE",
    "ELEVEN_LABS_MODEL_ID",
    "ELEVEN_LABS_STABILITY",
    "ELEVEN_LABS_SIMILARITY_BOOST",
    "WHISPER_MODEL",
    "WHISPER_LANGUAGE",
    "OPENAI_CHAT_MODEL",
    "T101_CACHE_DIR",
    "T101_LOG_DIR",
    "T101_SERVER_URL",
    "T101_MAX_RECORDING_MS",
    "VOSK_MODEL_PATH",
    "RATE_LIMIT_API_WINDOW",
    "RATE_LIMIT_API_MAX",
    "RATE_LIMIT_SPEECH_WINDOW",
    "RATE_LIMIT_SPEECH_MAX",
    "RATE_LIMIT_RECOGNITION_WINDOW",
    "RATE_LIMIT_RECOGNITION_MAX",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path) -> Generator[None]:
    """Keep the developer's environment and config file out of every test."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("T101_CONFIG", str(tmp_path / "missing-config.toml"))
    monkeypatch.setenv("T101_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("T101_LOG_DIR", str(tmp_path / "logs"))
    reset_config()
    yield
    reset_config()


@pytest.fixture
def test_config(tmp_path) -> T101Config:
    from test_helpers import make_config

    return make_config(tmp_path)
