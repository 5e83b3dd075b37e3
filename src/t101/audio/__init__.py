"""Audio playback and microphone capture for t101.

Playback uses pygame; capture uses sounddevice and is imported lazily by
``t101.voice.recorder`` so that machines without PortAudio can still play.
"""

from .player import AudioPlayer

__all__ = ["AudioPlayer"]
