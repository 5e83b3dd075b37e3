"""Per-terminal session state.

A ``TerminalSession`` owns everything one terminal needs: the backend
client, the speech queue and the voice input resolver. It replaces the
module-level globals a single-page front end would keep.
"""

import logging

from ..audio.player import AudioPlayer
from ..config import ClientConfig, load_config
from ..providers.system import SystemTTSProvider
from ..speech.queue import SpeechQueue
from ..tts.models import SpeechOptions
from ..voice.capabilities import VoiceCapabilities, detect_capabilities
from ..voice.resolver import VoiceInputResolver
from .api_client import TerminalAPIClient

logger = logging.getLogger(__name__)


def _native_synthesizer() -> SystemTTSProvider | None:
    try:
        provider = SystemTTSProvider()
    except RuntimeError as e:
        logger.debug(f"Native speech disabled: {e}")
        return None
    if not provider.is_available():
        logger.debug("Native speech command not found on PATH")
        return None
    return provider


class TerminalSession:
    """Async context manager wiring client, speech queue and voice input.

    Example:
        async with TerminalSession() as session:
            heard = await session.listen()
            await session.respond(heard)
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        client: TerminalAPIClient | None = None,
        player: AudioPlayer | None = None,
        capabilities: VoiceCapabilities | None = None,
        native: SystemTTSProvider | None = None,
    ) -> None:
        self.config = config or load_config().client
        self.client = client or TerminalAPIClient(
            self.config.server_url, api_key=self.config.api_key
        )
        self.capabilities = capabilities or detect_capabilities(self.config)
        native = native if native is not None else _native_synthesizer()
        self.queue = SpeechQueue(
            player or AudioPlayer(),
            remote=self.client.synthesize,
            native=native.synthesize if native is not None else None,
        )
        self.resolver = VoiceInputResolver(self.capabilities, self.client.transcribe)

    async def __aenter__(self) -> "TerminalSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Let queued speech finish, then release the HTTP client."""
        await self.queue.close()
        await self.client.aclose()

    async def speak(self, text: str, options: SpeechOptions | None = None) -> None:
        await self.queue.speak(text, options)

    async def listen(self, max_duration_ms: int | None = None) -> str:
        return await self.resolver.resolve_voice_input(
            max_duration_ms or self.config.max_recording_ms
        )

    async def respond(self, message: str, options: SpeechOptions | None = None) -> str:
        """Send a message to the chat route and speak the reply.

        Returns:
            The reply text
        """
        reply = await self.client.chat(message)
        await self.speak(reply, options)
        return reply
