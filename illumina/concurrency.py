"""Bounded fan-out for the async fetch stages."""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import typing as typ

from ._constants import DEFAULT_CONCURRENCY

T = typ.TypeVar("T")
R = typ.TypeVar("R")


async def map_with_concurrency(
    items: cabc.Sequence[T],
    worker: cabc.Callable[[T], cabc.Awaitable[R]],
    limit: int = DEFAULT_CONCURRENCY,
) -> list[R]:
    """Run ``worker`` over ``items`` with at most ``limit`` calls in flight.

    ``min(limit, len(items))`` lanes drain one shared queue; a lane picks the
    next item as soon as its current call finishes, so every item is taken by
    exactly one lane. The coroutine returns once every call has completed.

    Parameters
    ----------
    items : Sequence
        Work items, processed once each.
    worker : Callable
        Async callable applied to each item. Exceptions it raises propagate
        after the remaining lanes have drained; callers that need per-item
        isolation handle failures inside ``worker``.
    limit : int, optional
        Maximum number of concurrent ``worker`` calls. Defaults to
        ``DEFAULT_CONCURRENCY``.

    Returns
    -------
    list
        Worker results in the same order as ``items``.

    Raises
    ------
    ValueError
        If ``limit`` is smaller than one.
    """
    if limit < 1:
        msg = f"Concurrency limit must be at least 1, got {limit}."
        raise ValueError(msg)

    results: list[typ.Any] = [None] * len(items)
    queue = iter(enumerate(items))

    async def _lane() -> None:
        for index, item in queue:
            results[index] = await worker(item)

    lanes = min(limit, len(items))
    if lanes:
        outcomes = await asyncio.gather(
            *(_lane() for _ in range(lanes)), return_exceptions=True
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
    return typ.cast("list[R]", results)


__all__ = ["map_with_concurrency"]
