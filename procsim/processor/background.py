"""Bounded-parallel background processing of a started process."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional

from procsim.models import ProcessStatus
from procsim.processor.ledger import ItemLedger
from procsim.processor.machine import StateMachine
from procsim.processor.work import ItemWorker
from procsim.store.base import StoreError
from procsim.utils.logging import bind_process, get_logger

logger = get_logger("processor.background")


@dataclass
class BackgroundRun:
    """Shared state of one background run across its workers."""

    process_id: str
    failed: asyncio.Event = field(default_factory=asyncio.Event)
    abandoned: asyncio.Event = field(default_factory=asyncio.Event)
    processed: int = 0
    skipped: int = 0
    error: Optional[str] = None

    @property
    def should_stop(self) -> bool:
        return self.failed.is_set() or self.abandoned.is_set()


def partition(items: list[int], workers: int) -> list[list[int]]:
    """Split items round-robin into at most `workers` disjoint slices."""
    workers = max(1, min(workers, len(items)))
    return [items[i::workers] for i in range(workers)]


class BackgroundDriver:
    """
    Drives every remaining item of a running process to processed.

    Launched once at start as a detached task. Items are split into
    disjoint slices, one worker coroutine per slice, with at most
    `parallelism` workers. Each worker re-checks the process status
    before every item and every write is conditioned on Running, so a
    cancelled process is never written to or resurrected. The first
    failing item stops new work and the process is finalized as Failed.
    """

    def __init__(
        self,
        machine: StateMachine,
        ledger: ItemLedger,
        worker: ItemWorker,
        parallelism: int = 1,
    ) -> None:
        self.machine = machine
        self.ledger = ledger
        self.worker = worker
        self.parallelism = max(1, parallelism)
        self._tasks: dict[str, asyncio.Task] = {}

    def launch(self, process_id: str) -> asyncio.Task:
        """
        Start background processing without waiting for it.

        Must be called from a running event loop. A second launch for
        a process that already has a live task returns that task.
        """
        existing = self._tasks.get(process_id)
        if existing is not None and not existing.done():
            return existing

        task = asyncio.create_task(self.run(process_id), name=f"process-{process_id}")
        self._tasks[process_id] = task
        task.add_done_callback(lambda t: self._forget(process_id, t))

        logger.debug("background_launched", process_id=process_id)
        return task

    def _forget(self, process_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(process_id) is task:
            del self._tasks[process_id]

    def is_active(self, process_id: str) -> bool:
        task = self._tasks.get(process_id)
        return task is not None and not task.done()

    async def wait(self, process_id: str) -> Optional[ProcessStatus]:
        """Wait for a process's background run, if one is active."""
        task = self._tasks.get(process_id)
        if task is None:
            return None
        return await task

    async def shutdown(self) -> None:
        """Cancel every active background run."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("background_shutdown", cancelled=len(tasks))

    async def run(self, process_id: str) -> Optional[ProcessStatus]:
        """
        Process all remaining items and finalize the status.

        Never raises except on task cancellation; failures end in the
        Failed status instead.

        Returns:
            Final status observed, or None if the process vanished
        """
        with bind_process(process_id):
            try:
                return await self._run(process_id)
            except asyncio.CancelledError:
                logger.info("background_cancelled", process_id=process_id)
                raise
            except Exception as e:
                logger.error(
                    "background_crashed",
                    process_id=process_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                try:
                    result = await self.machine.fail(process_id)
                except StoreError as store_error:
                    logger.error(
                        "background_fail_not_saved",
                        process_id=process_id,
                        error=str(store_error),
                    )
                    return None
                return result.unwrap().status if result.is_ok() else None

    async def _run(self, process_id: str) -> Optional[ProcessStatus]:
        process = await self.ledger.fetch(process_id)
        if process is None:
            logger.warning("background_process_missing", process_id=process_id)
            return None
        if process.status != ProcessStatus.RUNNING:
            logger.info(
                "background_not_running",
                process_id=process_id,
                status=process.status.value,
            )
            return process.status

        items = process.remaining_items
        slices = partition(items, self.parallelism) if items else []
        run = BackgroundRun(process_id=process_id)

        logger.info(
            "background_started",
            process_id=process_id,
            items=len(items),
            workers=len(slices),
        )

        results = await asyncio.gather(
            *(self._work_slice(run, chunk) for chunk in slices),
            return_exceptions=True,
        )
        for outcome in results:
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, Exception):
                run.error = run.error or str(outcome)
                run.failed.set()

        return await self._finalize(run)

    async def _work_slice(self, run: BackgroundRun, chunk: list[int]) -> None:
        for item in chunk:
            if run.should_stop:
                return

            current = await self.ledger.fetch(run.process_id)
            if current is None or current.status != ProcessStatus.RUNNING:
                run.abandoned.set()
                return

            try:
                await self.worker(run.process_id, item)
            except Exception as e:
                logger.error(
                    "item_failed",
                    process_id=run.process_id,
                    item=item,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                run.error = run.error or str(e)
                run.failed.set()
                return

            modified = await self.ledger.mark_processed(
                run.process_id,
                item,
                require_status=ProcessStatus.RUNNING,
            )
            if modified == 0:
                current = await self.ledger.fetch(run.process_id)
                if current is None or current.status != ProcessStatus.RUNNING:
                    run.abandoned.set()
                    return
                # Recorded by another path already
                run.skipped += 1
                logger.debug("item_already_recorded", process_id=run.process_id, item=item)
                continue

            run.processed += 1
            logger.info("item_processed", process_id=run.process_id, item=item, path="background")

    async def _finalize(self, run: BackgroundRun) -> Optional[ProcessStatus]:
        if run.failed.is_set():
            result = await self.machine.fail(run.process_id)
        elif run.abandoned.is_set():
            current = await self.ledger.fetch(run.process_id)
            logger.info(
                "background_abandoned",
                process_id=run.process_id,
                processed=run.processed,
                status=current.status.value if current else None,
            )
            return current.status if current else None
        else:
            result = await self.machine.complete(run.process_id)

        if result.is_err():
            # Left Running while we worked (e.g. cancelled)
            current = await self.ledger.fetch(run.process_id)
            logger.info(
                "finalize_skipped",
                process_id=run.process_id,
                reason=result.unwrap_err().message,
            )
            return current.status if current else None

        final = result.unwrap().status
        logger.info(
            "background_finalized",
            process_id=run.process_id,
            status=final.value,
            processed=run.processed,
            skipped=run.skipped,
            error=run.error,
        )
        return final
