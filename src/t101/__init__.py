"""t101 - voice terminal with a caching speech and chat proxy."""

__version__ = "0.1.0"
__all__ = ["TerminalSession"]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name == "TerminalSession":
        from .client.session import TerminalSession

        return TerminalSession
    raise AttributeError(f"module 't101' has no attribute {name!r}")
