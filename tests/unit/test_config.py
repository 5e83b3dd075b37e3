"""Unit tests for configuration loading."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from t101.config import (
    DEFAULT_VOICE_ID,
    load_config,
    reset_config,
    validate_production,
)


class TestLoadConfig:
    def test_defaults_without_file_or_env(self) -> None:
        config = load_config()

        assert config.server.port == 3000
        assert config.server.host == "127.0.0.1"
        assert config.server.cors_origins == ("*",)
        assert config.server.api_key is None
        assert config.server.is_development
        assert config.providers.default_voice == DEFAULT_VOICE_ID
        assert config.rate_limits.api.max_requests == 60
        assert config.rate_limits.speech.max_requests == 10
        assert config.rate_limits.recognition.max_requests == 20
        assert config.rate_limits.speech.window_ms == 60_000
        assert config.client.max_recording_ms == 10_000
        assert config.source is None

    def test_env_vars_override(self, monkeypatch) -> None:
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
        monkeypatch.setenv("API_KEY", "secret")
        monkeypatch.setenv("RATE_LIMIT_SPEECH_MAX", "3")
        monkeypatch.setenv("RATE_LIMIT_SPEECH_WINDOW", "1000")
        monkeypatch.setenv("ELEVEN_LABS_DEFAULT_VOICE", "voice-x")

        config = load_config()

        assert config.server.port == 8080
        assert config.server.cors_origins == ("http://a.test", "http://b.test")
        assert config.server.api_key == "secret"
        assert config.client.api_key == "secret"
        assert config.rate_limits.speech.max_requests == 3
        assert config.rate_limits.speech.window_ms == 1000
        assert config.providers.default_voice == "voice-x"

    def test_file_values_used_and_env_wins(self, tmp_path, monkeypatch) -> None:
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            '[server]\nport = 4000\nhost = "0.0.0.0"\n'
            "[rate_limits.api]\nmax = 5\n"
            '[client]\nvosk_model_path = "/models/vosk"\n'
        )
        monkeypatch.setenv("HOST", "10.0.0.1")

        config = load_config(config_file)

        assert config.server.port == 4000
        assert config.server.host == "10.0.0.1"
        assert config.rate_limits.api.max_requests == 5
        assert config.client.vosk_model_path == Path("/models/vosk")
        assert config.source == config_file

    def test_config_is_cached_until_reset(self, monkeypatch) -> None:
        first = load_config()
        monkeypatch.setenv("PORT", "9999")

        assert load_config() is first

        reset_config()
        assert load_config().server.port == 9999

    def test_invalid_number_raises(self, monkeypatch) -> None:
        monkeypatch.setenv("PORT", "eighty")

        with pytest.raises(ValueError):
            load_config()


class TestValidateProduction:
    def test_development_never_exits(self) -> None:
        validate_production(load_config())

    def test_missing_vars_exit_with_code_1(self, monkeypatch, capsys) -> None:
        monkeypatch.setenv("T101_ENV", "production")
        monkeypatch.setenv("SESSION_SECRET", "s")

        with pytest.raises(SystemExit) as exc_info:
            validate_production(load_config())

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "OPENAI_API_KEY" in err
        assert "ELEVEN_LABS_API_KEY" in err
        assert "SESSION_SECRET" not in err.split(":", 1)[1]

    def test_secrets_from_config_file_satisfy_production(self, tmp_path) -> None:
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            '[server]\nenvironment = "production"\nsession_secret = "file-secret"\n'
            '[providers]\nopenai_api_key = "sk-file"\nelevenlabs_api_key = "el-file"\n'
        )

        validate_production(load_config(config_file))

    def test_complete_production_env_passes(self, monkeypatch) -> None:
        monkeypatch.setenv("T101_ENV", "production")
        for name in ("SESSION_SECRET", "OPENAI_API_KEY", "ELEVEN_LABS_API_KEY"):
            monkeypatch.setenv(name, "set")

        validate_production(load_config())
