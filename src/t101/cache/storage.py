"""File-per-entry speech cache.

Each synthesized utterance is stored as one audio file whose name is derived
from the request that produced it. Entries are immutable once written and
only go away through ``clear()``.
"""

import asyncio
import base64
import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .models import CacheStats

logger = logging.getLogger(__name__)

AUDIO_SUFFIX = ".mp3"


def cache_key(fields: dict[str, Any]) -> str:
    """Build a filesystem-safe cache key from request fields.

    The fields are serialized as canonical JSON (sorted keys, fixed
    separators) so that the same request always maps to the same key no
    matter how the caller ordered its dict. The SHA-256 digest of that JSON
    is base64-encoded with the URL-safe alphabet so the key never contains a
    path separator.

    Args:
        fields: JSON-serializable request fields

    Returns:
        43-character key
    """
    canonical = json.dumps(
        fields, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


class SpeechCache:
    """Stores synthesized audio on disk keyed by request hash."""

    def __init__(self, cache_dir: Path) -> None:
        """Initialize the cache, creating its directory.

        Args:
            cache_dir: Directory that holds the audio files
        """
        self.cache_dir = cache_dir
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self.cache_dir / f"{key}{AUDIO_SUFFIX}"

    async def get(self, key: str) -> bytes | None:
        """Return cached audio for a key, or None on a miss."""
        path = self.path_for(key)

        def _read() -> bytes | None:
            try:
                return path.read_bytes()
            except FileNotFoundError:
                return None

        audio = await asyncio.to_thread(_read)
        if audio is not None:
            logger.debug(f"Cache hit: {path.name}")
        return audio

    async def put(self, key: str, audio: bytes) -> Path:
        """Write audio for a key.

        The write goes to a temporary file in the same directory and is then
        renamed into place, so readers never see a partial file. Two writers
        racing on the same key produce the same bytes.

        Raises:
            ValueError: If audio is empty
            OSError: If the file cannot be written
        """
        if not audio:
            raise ValueError("No audio data provided")

        path = self.path_for(key)

        def _write() -> None:
            fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, suffix=".part")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(audio)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

        await asyncio.to_thread(_write)
        logger.debug(f"Cached {len(audio)} bytes as {path.name}")
        return path

    def _entries(self) -> list[Path]:
        return [p for p in self.cache_dir.glob(f"*{AUDIO_SUFFIX}") if p.is_file()]

    def stats(self) -> CacheStats:
        """Count cached files and their total size."""
        entries = self._entries()
        return CacheStats(
            items=len(entries), size_bytes=sum(p.stat().st_size for p in entries)
        )

    def clear(self) -> int:
        """Delete every cached file.

        Returns:
            Number of files removed
        """
        removed = 0
        for path in self._entries():
            path.unlink(missing_ok=True)
            removed += 1
        logger.info(f"Cleared {removed} cached speech files")
        return removed
