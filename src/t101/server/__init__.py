"""HTTP backend: FastAPI app proxying speech, transcription and chat."""

from .app import AppContext, build_context, create_app

__all__ = ["AppContext", "build_context", "create_app"]
