"""Serialized speech output.

Every ``speak()`` call is appended to a FIFO and a single drain task works
through it, synthesizing and playing one utterance to completion before
starting the next. Failures are logged and never stall the queue.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from ..audio.player import AudioPlayer
from ..tts.models import SpeechOptions
from .fallback import AllStrategiesFailedError, first_successful

logger = logging.getLogger(__name__)

RemoteSynthesizer = Callable[[str, SpeechOptions], Awaitable[bytes]]
NativeSynthesizer = Callable[[str], Awaitable[bytes]]


class SpeechQueueClosedError(RuntimeError):
    """Raised when speaking through a queue that has been closed."""


@dataclass
class _QueueItem:
    text: str
    options: SpeechOptions
    done: asyncio.Future[None] = field(repr=False)


class SpeechQueue:
    """FIFO speech output with remote-first, native-fallback synthesis.

    Args:
        player: Plays synthesized audio to completion
        remote: Remote synthesizer, usually the backend's ``/api/tts``
        native: On-device synthesizer used when remote synthesis fails

    Example:
        queue = SpeechQueue(AudioPlayer(), remote=client.synthesize)
        await queue.speak("I'll be back.")
    """

    def __init__(
        self,
        player: AudioPlayer,
        remote: RemoteSynthesizer | None = None,
        native: NativeSynthesizer | None = None,
    ) -> None:
        self.player = player
        self.remote = remote
        self.native = native
        self._items: deque[_QueueItem] = deque()
        self._drain_task: asyncio.Task[None] | None = None
        self._current: _QueueItem | None = None
        self._closed = False

    @property
    def pending(self) -> int:
        """Number of items waiting behind the one in flight."""
        return len(self._items)

    @property
    def busy(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    async def speak(self, text: str, options: SpeechOptions | None = None) -> None:
        """Queue text and wait until it has been spoken (or given up on).

        Never raises for synthesis or playback failures.

        Raises:
            SpeechQueueClosedError: If the queue has been closed
        """
        if self._closed:
            raise SpeechQueueClosedError("Speech queue is closed")

        loop = asyncio.get_running_loop()
        item = _QueueItem(text=text, options=options or SpeechOptions(), done=loop.create_future())
        self._items.append(item)

        if not self.busy:
            self._drain_task = asyncio.create_task(self._drain())

        await asyncio.shield(item.done)

    async def close(self) -> None:
        """Refuse new work and wait for queued items to finish."""
        self._closed = True
        if self._drain_task is not None:
            await self._drain_task

    async def _drain(self) -> None:
        while self._items:
            item = self._items.popleft()
            self._current = item
            try:
                await self._process(item)
            except Exception as e:
                logger.error(f"Unexpected error speaking '{item.text[:50]}': {e}")
            finally:
                self._current = None
                if not item.done.done():
                    item.done.set_result(None)

    async def _process(self, item: _QueueItem) -> None:
        if item.options.silent or not item.text.strip():
            return

        strategies = []
        if self.remote is not None and not item.options.use_native:
            strategies.append(self._remote_strategy(item))
        if self.native is not None:
            strategies.append(self._native_strategy(item))

        if not strategies:
            logger.warning("No speech synthesizer configured, dropping utterance")
            return

        try:
            await first_successful(strategies)
        except AllStrategiesFailedError as e:
            logger.error(f"Speech failed for '{item.text[:50]}': {e}")

    def _remote_strategy(self, item: _QueueItem) -> Callable[[], Awaitable[None]]:
        async def remote() -> None:
            audio = await self.remote(item.text, item.options)
            await self.player.play_bytes_async(audio)

        return remote

    def _native_strategy(self, item: _QueueItem) -> Callable[[], Awaitable[None]]:
        async def native() -> None:
            audio = await self.native(item.text)
            await self.player.play_bytes_async(audio)

        return native
