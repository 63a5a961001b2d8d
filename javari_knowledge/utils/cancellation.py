"""Cooperative cancellation for ingestion calls.

A :class:`CancellationToken` is threaded through the pipeline and checked
before every embedding and store call.  Cancelling it stops the run at the
next check; calls already in flight are cancelled by the pipeline when it
unwinds.
"""

from __future__ import annotations

import asyncio

from javari_knowledge.utils.errors import IngestionCancelledError


class CancellationToken:
    """Flag shared between the caller and one ingestion call."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "cancelled by caller") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise IngestionCancelledError(message=f"Ingestion cancelled: {self._reason}")

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()
