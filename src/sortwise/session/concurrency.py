"""Concurrent fan-out primitives.

Both helpers start every awaitable at once with no concurrency cap. They
differ in how failures surface: ``settle_all`` reports each outcome so callers
can keep the successes, while ``join_all`` fails as soon as any awaitable does.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Settled(Generic[T]):
    """Outcome of one awaitable: either a value or the exception it raised."""

    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle_all(awaitables: Iterable[Awaitable[T]]) -> list[Settled[T]]:
    """Wait for every awaitable and return their outcomes in input order."""
    outcomes = await asyncio.gather(*awaitables, return_exceptions=True)
    settled: list[Settled[T]] = []
    for outcome in outcomes:
        if isinstance(outcome, Exception):
            settled.append(Settled(error=outcome))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            settled.append(Settled(value=outcome))
    return settled


async def join_all(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """Wait for every awaitable; raise the first exception any of them raises."""
    return list(await asyncio.gather(*awaitables))


__all__ = ["Settled", "join_all", "settle_all"]
