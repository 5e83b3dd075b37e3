"""On-disk speech cache for t101."""

from pathlib import Path

from .models import CacheStats
from .storage import SpeechCache, cache_key


def get_cache_dir(base: Path | None = None) -> Path:
    """Get or create the speech cache directory.

    Creates ``<base>/speech`` (default base ``~/.cache/t101``) if missing.
    """
    base = base or Path.home() / ".cache" / "t101"
    speech_dir = base / "speech"
    speech_dir.mkdir(parents=True, exist_ok=True)
    return speech_dir


__all__ = ["CacheStats", "SpeechCache", "cache_key", "get_cache_dir"]
