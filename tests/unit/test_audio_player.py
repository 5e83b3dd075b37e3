"""Unit tests for AudioPlayer validation and error handling logic."""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from t101.audio.player import AudioPlayer, detect_format


class TestAudioPlayerValidation:
    """Test AudioPlayer validation logic."""

    def test_construction_does_not_touch_mixer(self) -> None:
        """Mixer stays uninitialized until something is played."""
        with patch("t101.audio.player.pygame.mixer.init") as mock_init:
            AudioPlayer()

            mock_init.assert_not_called()

    def test_play_bytes_with_empty_data_raises_value_error(self) -> None:
        player = AudioPlayer()

        with pytest.raises(ValueError, match="No audio data provided"):
            player.play_bytes(b"")

    @pytest.mark.asyncio
    async def test_play_bytes_async_with_empty_data_raises_value_error(self) -> None:
        player = AudioPlayer()

        with pytest.raises(ValueError, match="No audio data provided"):
            await player.play_bytes_async(b"")

    def test_save_to_file_with_empty_data_raises_value_error(self) -> None:
        player = AudioPlayer()

        with pytest.raises(ValueError, match="No audio data provided"):
            player.save_to_file(b"", "output.mp3")

    def test_save_to_file_creates_parent_directories(self, tmp_path) -> None:
        player = AudioPlayer()
        target = tmp_path / "nested" / "dir" / "out.mp3"

        player.save_to_file(b"audio", str(target))

        assert target.read_bytes() == b"audio"

    def test_save_without_suffix_uses_clip_format(self, tmp_path) -> None:
        wav = b"RIFF\x24\x00\x00\x00WAVEfmt "

        saved = AudioPlayer().save_to_file(wav, tmp_path / "reply")

        assert saved == tmp_path / "reply.wav"
        assert saved.read_bytes() == wav


class TestDetectFormat:
    def test_wav_header(self) -> None:
        assert detect_format(b"RIFF\x00\x00\x00\x00WAVEfmt ") == "wav"

    def test_everything_else_is_mp3(self) -> None:
        assert detect_format(b"ID3\x04\x00") == "mp3"
        assert detect_format(b"RIFF\x00\x00\x00\x00AVI ") == "mp3"


class TestAudioPlayerPlayback:
    """Test playback through a mocked pygame mixer."""

    def test_mixer_init_failure_raises_runtime_error(self) -> None:
        """Test RuntimeError when pygame mixer cannot start."""
        import pygame

        with patch("t101.audio.player.pygame.mixer.init", side_effect=pygame.error("no audio device")):
            player = AudioPlayer()

            with pytest.raises(RuntimeError, match="Failed to initialize pygame audio mixer"):
                player.play_bytes(b"audio")

    def test_play_bytes_waits_until_music_finishes(self) -> None:
        with patch("t101.audio.player.pygame") as mock_pygame:
            mock_pygame.error = Exception
            mock_pygame.mixer.music.get_busy.side_effect = [True, True, False]
            clock = MagicMock()
            mock_pygame.time.Clock.return_value = clock

            AudioPlayer().play_bytes(b"audio")

            mock_pygame.mixer.init.assert_called_once()
            mock_pygame.mixer.music.play.assert_called_once()
            assert clock.tick.call_count == 2

    def test_wav_clip_is_loaded_with_format_hint(self) -> None:
        with patch("t101.audio.player.pygame") as mock_pygame:
            mock_pygame.error = Exception
            mock_pygame.mixer.music.get_busy.return_value = False

            AudioPlayer().play_bytes(b"RIFF\x00\x00\x00\x00WAVEdata")

            assert mock_pygame.mixer.music.load.call_args.args[1] == "wav"

    def test_mixer_initialized_once(self) -> None:
        with patch("t101.audio.player.pygame") as mock_pygame:
            mock_pygame.error = Exception
            mock_pygame.mixer.music.get_busy.return_value = False
            player = AudioPlayer()

            player.play_bytes(b"one")
            player.play_bytes(b"two")

            mock_pygame.mixer.init.assert_called_once()

    def test_load_failure_raises_runtime_error(self) -> None:
        with patch("t101.audio.player.pygame") as mock_pygame:
            mock_pygame.error = ValueError
            mock_pygame.mixer.music.load.side_effect = ValueError("corrupt mp3")

            with pytest.raises(RuntimeError, match="Failed to play mp3 audio"):
                AudioPlayer().play_bytes(b"garbage")

    @pytest.mark.asyncio
    async def test_play_bytes_async_delegates_to_thread(self) -> None:
        player = AudioPlayer()

        with patch.object(player, "play_bytes") as mock_play:
            await player.play_bytes_async(b"audio")

        mock_play.assert_called_once_with(b"audio")
