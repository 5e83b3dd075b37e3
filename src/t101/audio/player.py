"""Speaker output for the terminal.

Plays the MP3 clips returned by the backend and the WAV clips produced by
on-device speech through one pygame mixer.
"""

# ruff: noqa: E402
import os

# Suppress pygame's welcome message BEFORE any pygame import
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

import warnings

warnings.filterwarnings("ignore", category=UserWarning, module="pygame.pkgdata")

import asyncio
import io
import logging
from pathlib import Path

import pygame

logger = logging.getLogger(__name__)

# Poll rate while waiting for a clip to finish
PLAYBACK_TICK_HZ = 10


def detect_format(audio_data: bytes) -> str:
    """Return ``"wav"`` or ``"mp3"`` from the clip's leading bytes."""
    if audio_data[:4] == b"RIFF" and audio_data[8:12] == b"WAVE":
        return "wav"
    return "mp3"


class AudioPlayer:
    """Plays one clip at a time and blocks until it has finished.

    The mixer starts on first playback, so a terminal without a sound
    device can still save clips to disk.
    """

    def __init__(self) -> None:
        self._initialized = False

    def _ensure_mixer(self) -> None:
        if self._initialized:
            return
        try:
            pygame.mixer.init()
        except pygame.error as e:
            raise RuntimeError(f"Failed to initialize pygame audio mixer: {e}") from e
        self._initialized = True

    def play_bytes(self, audio_data: bytes) -> None:
        """Play a clip and return when it is done.

        Raises:
            ValueError: If no audio data provided.
            RuntimeError: If the mixer cannot start or the clip cannot be decoded.
        """
        if not audio_data:
            raise ValueError("No audio data provided")

        self._ensure_mixer()
        fmt = detect_format(audio_data)
        try:
            # The hint lets SDL pick a decoder for an unnamed buffer
            pygame.mixer.music.load(io.BytesIO(audio_data), fmt)
            pygame.mixer.music.play()

            clock = pygame.time.Clock()
            while pygame.mixer.music.get_busy():
                clock.tick(PLAYBACK_TICK_HZ)
        except pygame.error as e:
            raise RuntimeError(f"Failed to play {fmt} audio: {e}") from e

        logger.debug(f"Played {len(audio_data)} bytes of {fmt}")

    async def play_bytes_async(self, audio_data: bytes) -> None:
        if not audio_data:
            raise ValueError("No audio data provided")
        await asyncio.to_thread(self.play_bytes, audio_data)

    def save_to_file(self, audio_data: bytes, filepath: str | Path) -> Path:
        """Write a clip to disk instead of playing it.

        A path without a suffix gets ``.mp3`` or ``.wav`` to match the clip.

        Returns:
            The path that was written.
        """
        if not audio_data:
            raise ValueError("No audio data provided")

        filepath = Path(filepath)
        if not filepath.suffix:
            filepath = filepath.with_suffix(f".{detect_format(audio_data)}")

        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_bytes(audio_data)
        return filepath
