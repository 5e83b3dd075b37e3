"""Unit tests for the voice input fallback chain."""

import asyncio
import sys
import time
from pathlib import Path
from unittest.mock import AsyncMock

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from t101.voice.capabilities import VoiceCapabilities
from t101.voice.errors import (
    MicrophonePermissionError,
    NoAudioDataError,
    RecognitionError,
    VoiceInputTimeout,
    VoiceInputUnavailable,
)
from t101.voice.recorder import Recording
from t101.voice.resolver import VoiceInputResolver


def speech_recording() -> Recording:
    return Recording(chunks=[np.zeros((1600, 1), dtype=np.int16)], sample_rate=16000)


class FakeRecognizer:
    def __init__(self, text: str | None = None, error: Exception | None = None, delay: float = 0.0) -> None:
        self.text = text
        self.error = error
        self.delay = delay
        self.calls = 0

    async def recognize(self, timeout_ms: int) -> str:
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text


class FakeRecorder:
    def __init__(
        self,
        recording: Recording | None = None,
        error: Exception | None = None,
        hang: bool = False,
    ) -> None:
        self.recording = recording if recording is not None else speech_recording()
        self.error = error
        self.hang = hang
        self.budgets: list[int] = []

    async def record(self, max_duration_ms: int) -> Recording:
        self.budgets.append(max_duration_ms)
        if self.hang:
            await asyncio.sleep(3600)
        if self.error is not None:
            raise self.error
        return self.recording


class TestRecognizerFirst:
    """On-device recognition is preferred when present."""

    @pytest.mark.asyncio
    async def test_recognizer_transcript_is_returned(self) -> None:
        recognizer = FakeRecognizer(text="open the pod bay doors")
        recorder = FakeRecorder()
        transcriber = AsyncMock(return_value="unused")
        resolver = VoiceInputResolver(VoiceCapabilities(recognizer, recorder), transcriber)

        assert await resolver.resolve_voice_input(1000) == "open the pod bay doors"
        assert recorder.budgets == []
        transcriber.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recognizer_error_falls_back_to_recording(self) -> None:
        recognizer = FakeRecognizer(error=RecognitionError("engine crashed"))
        recorder = FakeRecorder()
        transcriber = AsyncMock(return_value="from the server")
        resolver = VoiceInputResolver(VoiceCapabilities(recognizer, recorder), transcriber)

        assert await resolver.resolve_voice_input(1000) == "from the server"
        audio, filename = transcriber.await_args.args
        assert audio[:4] == b"RIFF"
        assert filename == "recording.wav"

    @pytest.mark.asyncio
    async def test_unexpected_recognizer_crash_falls_back_to_recording(self) -> None:
        recognizer = FakeRecognizer(error=RuntimeError("Failed to create a recognizer"))
        recorder = FakeRecorder()
        transcriber = AsyncMock(return_value="from the server")
        resolver = VoiceInputResolver(VoiceCapabilities(recognizer, recorder), transcriber)

        assert await resolver.resolve_voice_input(1000) == "from the server"
        assert len(recorder.budgets) == 1

    @pytest.mark.asyncio
    async def test_recorder_gets_remaining_budget(self) -> None:
        recognizer = FakeRecognizer(error=RecognitionError("no model"), delay=0.2)
        recorder = FakeRecorder()
        resolver = VoiceInputResolver(
            VoiceCapabilities(recognizer, recorder), AsyncMock(return_value="ok")
        )

        await resolver.resolve_voice_input(1000)

        assert 0 < recorder.budgets[0] <= 800

    @pytest.mark.asyncio
    async def test_recognizer_timeout_without_recorder_rejects_with_timeout(self) -> None:
        recognizer = FakeRecognizer(text="too late", delay=1.0)
        resolver = VoiceInputResolver(VoiceCapabilities(recognizer, None), None)

        with pytest.raises(VoiceInputTimeout):
            await resolver.resolve_voice_input(50)

    @pytest.mark.asyncio
    async def test_recognizer_error_without_recorder_propagates(self) -> None:
        recognizer = FakeRecognizer(error=RecognitionError("No speech recognized"))
        resolver = VoiceInputResolver(VoiceCapabilities(recognizer, None), None)

        with pytest.raises(RecognitionError, match="No speech recognized"):
            await resolver.resolve_voice_input(500)

    @pytest.mark.asyncio
    async def test_budget_spent_by_recognizer_rejects_with_timeout(self) -> None:
        recognizer = FakeRecognizer(text="never", delay=1.0)
        recorder = FakeRecorder()
        resolver = VoiceInputResolver(
            VoiceCapabilities(recognizer, recorder), AsyncMock(return_value="x")
        )

        with pytest.raises(VoiceInputTimeout):
            await resolver.resolve_voice_input(50)
        assert recorder.budgets == []


class TestRecordAndTranscribe:
    """Recording path behaviour and its edge cases."""

    @pytest.mark.asyncio
    async def test_zero_audio_rejects_with_no_audio_error(self) -> None:
        recorder = FakeRecorder(recording=Recording())
        transcriber = AsyncMock(return_value="")
        resolver = VoiceInputResolver(VoiceCapabilities(None, recorder), transcriber)

        with pytest.raises(NoAudioDataError, match="no audio data recorded"):
            await resolver.resolve_voice_input(500)
        transcriber.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reason", ["denied", "no_device", "busy"])
    async def test_permission_errors_keep_their_reason(self, reason: str) -> None:
        recorder = FakeRecorder(error=MicrophonePermissionError(reason))
        resolver = VoiceInputResolver(VoiceCapabilities(None, recorder), AsyncMock())

        with pytest.raises(MicrophonePermissionError) as exc_info:
            await resolver.resolve_voice_input(500)
        assert exc_info.value.reason == reason

    @pytest.mark.asyncio
    async def test_transcription_failure_is_not_retried(self) -> None:
        transcriber = AsyncMock(side_effect=ConnectionError("server down"))
        resolver = VoiceInputResolver(VoiceCapabilities(None, FakeRecorder()), transcriber)

        with pytest.raises(ConnectionError, match="server down"):
            await resolver.resolve_voice_input(500)
        assert transcriber.await_count == 1

    @pytest.mark.asyncio
    async def test_hung_recorder_is_bounded(self, monkeypatch) -> None:
        monkeypatch.setattr("t101.voice.resolver.RECORDER_GRACE_S", 0.05)
        resolver = VoiceInputResolver(
            VoiceCapabilities(None, FakeRecorder(hang=True)), AsyncMock()
        )

        started = time.monotonic()
        with pytest.raises(VoiceInputTimeout):
            await resolver.resolve_voice_input(100)
        assert time.monotonic() - started < 1.0

    @pytest.mark.asyncio
    async def test_nothing_available_rejects(self) -> None:
        resolver = VoiceInputResolver(VoiceCapabilities(None, None), AsyncMock())

        with pytest.raises(VoiceInputUnavailable):
            await resolver.resolve_voice_input(500)


class TestRecording:
    def test_to_wav_assembles_chunks(self) -> None:
        recording = Recording(
            chunks=[np.ones((800, 1), dtype=np.int16), np.ones((800, 1), dtype=np.int16)]
        )

        wav = recording.to_wav()

        assert wav[:4] == b"RIFF"
        assert recording.frames == 1600

    def test_to_wav_refuses_empty_recording(self) -> None:
        with pytest.raises(ValueError, match="No audio data recorded"):
            Recording().to_wav()

    def test_unknown_permission_reason_rejected(self) -> None:
        with pytest.raises(ValueError):
            MicrophonePermissionError("sleepy")
