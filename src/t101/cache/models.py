"""Data models for the speech cache."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheStats:
    """Summary of what the speech cache holds.

    Attributes:
        items: Number of cached audio files
        size_bytes: Total size of those files
    """

    items: int
    size_bytes: int

    @property
    def size_mb(self) -> str:
        return f"{self.size_bytes / (1024 * 1024):.2f} MB"

    def to_dict(self) -> dict[str, int | str]:
        return {
            "items": self.items,
            "sizeBytes": self.size_bytes,
            "size": self.size_mb,
        }
