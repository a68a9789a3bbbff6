"""
Cooperative cancellation tokens.

A ``CancellationToken`` is a one-shot signal. Work that receives a token
checks it at its own suspension points; tripping a token never interrupts
a coroutine that is already running.

Tokens can be linked: a child created with ``token.linked()`` trips when
its parent trips, but tripping the child leaves the parent untouched. The
executor uses this to derive a run-scoped token from the caller's token,
so a failure inside the run stops scheduling without cancelling the caller.

Usage:
    >>> caller = CancellationToken()
    >>> run = caller.linked()
    >>> run.cancel("item failed")
    >>> run.is_cancelled, caller.is_cancelled
    (True, False)
"""

from __future__ import annotations

import asyncio

from dirtransfer.core.exceptions import TransferCancelledError


class CancellationToken:
    """One-shot cooperative cancellation signal."""

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None
        self._event: asyncio.Event | None = None
        self._children: list[CancellationToken] = []

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Trip this token and every token linked to it."""
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        if self._event is not None:
            self._event.set()
        for child in self._children:
            child.cancel(reason)
        self._children.clear()

    def linked(self) -> CancellationToken:
        """Create a child token that trips when this one trips."""
        child = CancellationToken()
        if self._cancelled:
            child.cancel(self._reason)
        else:
            self._children.append(child)
        return child

    def raise_if_cancelled(self, key: str | None = None) -> None:
        if self._cancelled:
            raise TransferCancelledError(key=key, reason=self._reason)

    async def wait(self) -> None:
        """Block until the token is tripped."""
        if self._cancelled:
            return
        if self._event is None:
            self._event = asyncio.Event()
        await self._event.wait()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"<CancellationToken {state}>"
