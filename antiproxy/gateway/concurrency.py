"""Concurrency Gate: single-slot FIFO mutual exclusion.

Exactly one dispatch sequence (spanning all of its endpoint attempts) holds
the slot at a time. Waiters are woken strictly in arrival order: on release
the slot is handed directly to the oldest waiter, so a newcomer can never
take it ahead of someone already queued.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque

logger = logging.getLogger(__name__)


class ConcurrencyGate:
    """Single-slot gate with deterministic FIFO wake order.

    Usage:
        gate = ConcurrencyGate()

        async with gate:
            ...  # one dispatch sequence

        # or explicitly:
        await gate.acquire()
        try:
            ...
        finally:
            gate.release()
    """

    def __init__(self):
        self._locked = False
        self._waiters: deque[asyncio.Future] = deque()
        self._total_acquired = 0

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def waiting(self) -> int:
        """Number of dispatch sequences queued for the slot."""
        return sum(1 for fut in self._waiters if not fut.done())

    async def acquire(self) -> None:
        """Suspend until the slot is free and owned by the caller."""
        if not self._locked and not self._waiters:
            self._locked = True
            self._total_acquired += 1
            return

        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        logger.debug("Gate busy, queued at position %d", len(self._waiters))
        try:
            await fut
        except asyncio.CancelledError:
            if fut.done() and not fut.cancelled():
                # Slot was handed over just before cancellation; pass it on
                self.release()
            elif fut in self._waiters:
                self._waiters.remove(fut)
            raise
        self._total_acquired += 1

    def release(self) -> None:
        """Free the slot, handing it to the oldest live waiter if any."""
        if not self._locked:
            raise RuntimeError("ConcurrencyGate released while not held")

        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                # Ownership transfers directly; the gate stays locked
                fut.set_result(None)
                return

        self._locked = False

    async def __aenter__(self) -> ConcurrencyGate:
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()

    def get_stats(self) -> dict:
        return {
            "locked": self._locked,
            "waiting": self.waiting,
            "total_acquired": self._total_acquired,
        }
