"""Process operations exposed to callers."""

from __future__ import annotations

from collections import Counter
from typing import Awaitable, Iterable, Optional, TypeVar

from procsim.config.settings import EngineConfig
from procsim.models import Process, ProcessStatus
from procsim.processor.background import BackgroundDriver
from procsim.processor.ledger import ItemLedger
from procsim.processor.machine import StateMachine
from procsim.processor.manual import ManualItemProcessor
from procsim.processor.outcomes import ActionOutcome
from procsim.processor.sequential import SequentialDriver
from procsim.processor.work import ItemWorker, SimulatedWork
from procsim.store.base import ProcessStore, StoreError
from procsim.utils.logging import bind_process, get_logger
from procsim.utils.result import Err, ErrorCode, ProcessError, Result

logger = get_logger("processor.service")

T = TypeVar("T")


class ProcessService:
    """
    Entry point for creating, advancing and inspecting processes.

    Composes the state machine, item ledger and the three processing
    paths around one injected store. Operations return Result values
    and never raise for expected failures.
    """

    def __init__(
        self,
        store: ProcessStore,
        config: Optional[EngineConfig] = None,
        worker: Optional[ItemWorker] = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            store: Persistence collaborator
            config: Engine configuration (defaults if omitted)
            worker: Per-item unit of work (simulated delay if omitted)
        """
        self.store = store
        self.config = config or EngineConfig()
        self.worker = worker or SimulatedWork(self.config.work_delay)

        self.machine = StateMachine(store)
        self.ledger = ItemLedger(store)
        self.sequential = SequentialDriver(self.machine, self.ledger)
        self.manual = ManualItemProcessor(self.ledger, self.worker)
        self.background = BackgroundDriver(
            self.machine,
            self.ledger,
            self.worker,
            parallelism=self.config.parallelism,
        )

    async def _guarded(
        self,
        operation: Awaitable[Result[T, ProcessError]],
        process_id: Optional[str] = None,
    ) -> Result[T, ProcessError]:
        """Run an operation, reporting a failed store write as an Err."""
        try:
            return await operation
        except StoreError as e:
            logger.error("store_failure", process_id=process_id, error=str(e))
            return Err(ProcessError(
                code=ErrorCode.STORE_FAILURE,
                message=str(e),
                process_id=process_id,
            ))

    async def create_process(self, items: Iterable[int]) -> Result[Process, ProcessError]:
        return await self._guarded(self.machine.create(items))

    async def start_process(
        self,
        process_id: str,
        background: bool = True,
    ) -> Result[ActionOutcome, ProcessError]:
        """
        Move a process to Running.

        Args:
            process_id: Process identifier
            background: Launch background processing of all items;
                when False items are advanced with process_next_item

        Returns:
            Result acknowledging the start; background work continues
            after this returns
        """
        with bind_process(process_id):
            result = await self._guarded(self.machine.start(process_id), process_id)
            if result.is_ok() and background:
                self.background.launch(process_id)
            return result

    async def cancel_process(
        self,
        process_id: str,
        revert: bool = False,
    ) -> Result[ActionOutcome, ProcessError]:
        with bind_process(process_id):
            return await self._guarded(
                self.machine.cancel(process_id, revert=revert),
                process_id,
            )

    async def process_next_item(self, process_id: str) -> Result[ActionOutcome, ProcessError]:
        with bind_process(process_id):
            return await self._guarded(
                self.sequential.process_next_item(process_id),
                process_id,
            )

    async def process_item_manually(
        self,
        process_id: str,
        item: int,
    ) -> Result[ActionOutcome, ProcessError]:
        with bind_process(process_id):
            return await self._guarded(
                self.manual.process_item(process_id, item),
                process_id,
            )

    async def get_process(self, process_id: str) -> Optional[Process]:
        return await self.store.find_by_id(process_id)

    async def list_processes(self) -> list[Process]:
        return await self.store.list_all()

    async def status_summary(self) -> dict[str, int]:
        """Count of processes per status."""
        counts = Counter(p.status for p in await self.store.list_all())
        return {status.value: counts.get(status, 0) for status in ProcessStatus}

    async def wait_for_background(self, process_id: str) -> Optional[ProcessStatus]:
        return await self.background.wait(process_id)

    async def shutdown(self) -> None:
        await self.background.shutdown()
        logger.debug("service_shutdown")
