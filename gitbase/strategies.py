"""
Ordered fallback strategies.

A ``FallbackChain`` runs strategies that share the same postcondition one
after another. A strategy hands over to the next one only for the errors it
lists in ``fallback_on``; anything else propagates immediately.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Generic, TypeVar

from gitbase.logging import get_logger

logger = get_logger("strategies")

R = TypeVar("R")
T = TypeVar("T")


class FallbackStrategy(ABC, Generic[R, T]):
    """One way of reaching a postcondition."""

    name: str = "strategy"
    fallback_on: tuple[type[BaseException], ...] = (Exception,)

    @abstractmethod
    async def run(self, request: R) -> T:
        """Perform the operation for ``request``."""


class FallbackChain(Generic[R, T]):
    """
    Try strategies in order until one succeeds.

    Example:
        ```python
        chain = FallbackChain([BatchCommitStrategy(client), PerFileCommitStrategy(client)])
        result = await chain.run(request)
        ```
    """

    def __init__(self, strategies: Sequence[FallbackStrategy[R, T]]) -> None:
        if not strategies:
            raise ValueError("FallbackChain needs at least one strategy")
        self.strategies = list(strategies)

    def then(self, strategy: FallbackStrategy[R, T]) -> "FallbackChain[R, T]":
        """Return a new chain with ``strategy`` appended."""
        return FallbackChain([*self.strategies, strategy])

    async def run(self, request: R) -> T:
        last_index = len(self.strategies) - 1
        for index, strategy in enumerate(self.strategies):
            try:
                return await strategy.run(request)
            except strategy.fallback_on as exc:
                if index == last_index:
                    raise
                logger.warning(
                    "%s failed (%s); falling back to %s",
                    strategy.name,
                    exc,
                    self.strategies[index + 1].name,
                )
        raise AssertionError("unreachable")
