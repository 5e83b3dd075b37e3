"""Terminal-side client for the t101 backend."""

from .api_client import APIClientError, TerminalAPIClient
from .session import TerminalSession

__all__ = ["APIClientError", "TerminalAPIClient", "TerminalSession"]
