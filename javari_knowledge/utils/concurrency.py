"""Bounded-concurrency helpers for fan-out over external API calls.

Two patterns are exposed:

1. **throttled_gather** -- ``asyncio.gather`` with every awaitable wrapped
   in a semaphore acquire/release, for a known list of coroutines.

2. **ordered_bounded_map** -- a sliding window over a (possibly lazy)
   iterable: at most ``limit`` calls are in flight, results are yielded
   in input order, and anything still running is cancelled when the
   consumer stops early or a call raises.  The ingestion pipeline uses it
   so that a failure at chunk *i* deterministically means chunks
   ``0..i-1`` were the only ones committed.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import AsyncIterator, Awaitable, Callable, Iterable, TypeVar

_T = TypeVar("_T")
_I = TypeVar("_I")


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore,
    return_exceptions: bool = False,
) -> list[_T | BaseException]:
    """Run awaitables concurrently, at most ``semaphore`` slots at a time.

    Results come back in the same order as *coros*.
    """

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    return await asyncio.gather(*(_wrapped(c) for c in coros), return_exceptions=return_exceptions)


async def ordered_bounded_map(
    func: Callable[[_I], Awaitable[_T]],
    items: Iterable[_I],
    limit: int,
) -> AsyncIterator[tuple[_I, _T]]:
    """Yield ``(item, await func(item))`` in input order, ``limit`` calls at a time.

    *items* is consumed lazily: a new item is pulled only when a slot frees
    up.  If a call raises, the exception propagates to the consumer at that
    item's position and every call still pending is cancelled.  Wrap the
    generator in :func:`contextlib.aclosing` so the cancellation also runs
    when the consumer exits its ``async for`` loop early.
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    pending: deque[tuple[_I, asyncio.Future[_T]]] = deque()
    iterator = iter(items)
    exhausted = False
    try:
        while True:
            while not exhausted and len(pending) < limit:
                try:
                    item = next(iterator)
                except StopIteration:
                    exhausted = True
                    break
                pending.append((item, asyncio.ensure_future(func(item))))

            if not pending:
                return

            item, future = pending.popleft()
            yield item, await future
    finally:
        for _, future in pending:
            future.cancel()
        if pending:
            await asyncio.gather(*(f for _, f in pending), return_exceptions=True)
