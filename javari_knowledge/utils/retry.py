"""Configurable retry with exponential backoff for external service calls.

Only :class:`~javari_knowledge.utils.errors.TransientServiceError` is
retried.  Permanent errors, validation errors and cancellation propagate
on the first occurrence.

The default policy makes exactly one attempt, so nothing is retried
unless a caller opts in through ``RETRY_MAX_ATTEMPTS`` or an explicit
:class:`RetryPolicy`.  Retrying a store insert can duplicate records
because inserts carry no idempotency key.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Awaitable, Callable, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from javari_knowledge.utils.errors import TransientServiceError
from javari_knowledge.utils.logging import get_logger

_T = TypeVar("_T")

_logger = get_logger(__name__)


class RetryPolicy(BaseModel):
    """Exponential backoff settings for transient failures."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=1, ge=1, description="Total attempts, including the first.")
    base_delay: float = Field(default=1.0, ge=0.0, description="Seconds before the 2nd attempt.")
    multiplier: float = Field(default=2.0, ge=1.0)
    max_delay: float = Field(default=30.0, ge=0.0)

    def delay_for(self, attempt: int) -> float:
        """Return the sleep before retrying after failed *attempt* (1-based)."""
        return min(self.base_delay * self.multiplier ** (attempt - 1), self.max_delay)


NO_RETRY = RetryPolicy()


async def call_with_retry(
    operation: Callable[[], Awaitable[_T]],
    policy: RetryPolicy = NO_RETRY,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Callable[[int, float, TransientServiceError], object] | None = None,
    description: str = "service_call",
) -> _T:
    """Await ``operation()``, retrying transient failures per *policy*.

    Parameters
    ----------
    operation:
        Zero-argument callable returning a fresh awaitable on each call.
    policy:
        Attempt budget and backoff curve.
    sleep:
        Injected for tests; defaults to :func:`asyncio.sleep`.
    on_retry:
        Optional callback ``(attempt, delay, error)`` invoked before each
        backoff sleep.  May be sync or async.
    description:
        Event label used in log output.
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except TransientServiceError as exc:
            if attempt >= policy.max_attempts:
                raise
            delay = policy.delay_for(attempt)
            _logger.warning(
                "retrying_transient_failure",
                operation=description,
                attempt=attempt,
                max_attempts=policy.max_attempts,
                delay_s=delay,
                error=str(exc),
            )
            if on_retry is not None:
                maybe = on_retry(attempt, delay, exc)
                if inspect.isawaitable(maybe):
                    await maybe
            await sleep(delay)
            attempt += 1
