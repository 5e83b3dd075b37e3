"""Ordered fallback chains."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Strategy = Callable[[], Awaitable[T]]


class AllStrategiesFailedError(Exception):
    """Raised when every strategy in a chain failed.

    Attributes:
        errors: (strategy name, exception) pairs in the order they were tried
    """

    def __init__(self, errors: list[tuple[str, Exception]]) -> None:
        summary = "; ".join(f"{name}: {error}" for name, error in errors)
        super().__init__(f"All strategies failed ({summary})")
        self.errors = errors

    @property
    def last_error(self) -> Exception | None:
        return self.errors[-1][1] if self.errors else None


def _strategy_name(strategy: Callable) -> str:
    return getattr(strategy, "__name__", None) or repr(strategy)


async def first_successful(strategies: Sequence[Strategy[T]]) -> T:
    """Run strategies in order and return the first result that succeeds.

    A strategy fails by raising. The next one is only started after the
    previous one has finished, so at most one is ever in flight.

    Args:
        strategies: Zero-argument coroutine functions, most preferred first

    Returns:
        Result of the first strategy that did not raise

    Raises:
        AllStrategiesFailedError: If every strategy raised, or none were given
    """
    errors: list[tuple[str, Exception]] = []
    for strategy in strategies:
        name = _strategy_name(strategy)
        try:
            return await strategy()
        except Exception as e:
            logger.debug(f"Strategy {name} failed: {e}")
            errors.append((name, e))
    raise AllStrategiesFailedError(errors)
