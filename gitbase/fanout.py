"""Fan-out/join of independent remote calls."""

import asyncio
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from typing import Generic, TypeVar

K = TypeVar("K")
T = TypeVar("T")


@dataclass
class Outcomes(Generic[K, T]):
    """Results of a fan-out, split by key into successes and failures."""

    successes: dict[K, T] = field(default_factory=dict)
    failures: dict[K, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


async def gather_outcomes(calls: Mapping[K, Awaitable[T]]) -> Outcomes[K, T]:
    """
    Run all awaitables concurrently and wait for every one of them.

    A failing call never cancels the others. Cancellation of the caller still
    propagates.
    """
    keys = list(calls)
    results = await asyncio.gather(*(calls[key] for key in keys), return_exceptions=True)

    outcomes: Outcomes[K, T] = Outcomes()
    for key, result in zip(keys, results):
        if isinstance(result, Exception):
            outcomes.failures[key] = result
        elif isinstance(result, BaseException):
            raise result
        else:
            outcomes.successes[key] = result
    return outcomes
