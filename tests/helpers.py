"""Test workers with controllable timing."""

import asyncio


class GatedWorker:
    """Worker that blocks every item until released."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls: list[int] = []

    async def __call__(self, process_id: str, item: int) -> None:
        self.calls.append(item)
        self.started.set()
        await self.release.wait()


class RendezvousWorker:
    """Worker that holds callers until `parties` of them have arrived."""

    def __init__(self, parties: int = 2) -> None:
        self.parties = parties
        self.arrived = 0
        self.all_arrived = asyncio.Event()

    async def __call__(self, process_id: str, item: int) -> None:
        self.arrived += 1
        if self.arrived >= self.parties:
            self.all_arrived.set()
        await self.all_arrived.wait()


class RecordingWorker:
    """Records calls and fails on chosen items."""

    def __init__(self, fail_on: tuple[int, ...] = (), delay: float = 0.0) -> None:
        self.fail_on = set(fail_on)
        self.delay = delay
        self.calls: list[int] = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, process_id: str, item: int) -> None:
        self.calls.append(item)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            if item in self.fail_on:
                raise RuntimeError(f"boom on {item}")
        finally:
            self.active -= 1
