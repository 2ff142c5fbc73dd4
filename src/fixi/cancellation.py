"""Cooperative cancellation for in-flight requests.

A ``CancellationToken`` is handed to every API call and checked at each
suspend point (connection, every body chunk). Cancelling raises
``asyncio.CancelledError`` inside the call; the underlying I/O is never
killed from outside.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


class CancellationToken:
    """Signal shared between the caller and one or more invocations."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise asyncio.CancelledError("operation cancelled")

    async def wait_for(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        When the token wins, the pending work is cancelled and awaited so no
        half-finished task outlives the call.
        """
        self.raise_if_cancelled()
        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()
        if work.done():
            return work.result()
        work.cancel()
        try:
            await work
        except asyncio.CancelledError:
            pass
        raise asyncio.CancelledError("operation cancelled")


class _NeverCancelled(CancellationToken):
    """Token nobody else holds; skips the race in ``wait_for``."""

    async def wait_for(self, awaitable: Awaitable[T]) -> T:
        return await awaitable


def ensure_token(token: CancellationToken | None) -> CancellationToken:
    return token if token is not None else _NeverCancelled()


__all__ = ["CancellationToken", "ensure_token"]
