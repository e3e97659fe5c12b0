"""Unit of work performed for each item."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

# (process_id, item) -> None; raising marks the item as failed
ItemWorker = Callable[[str, int], Awaitable[None]]


class SimulatedWork:
    """Stand-in for real item work: waits a fixed delay."""

    def __init__(self, delay: float = 1.0) -> None:
        self.delay = delay

    async def __call__(self, process_id: str, item: int) -> None:
        if self.delay > 0:
            await asyncio.sleep(self.delay)
