"""On-demand advancement of a running process, one item per call."""

from __future__ import annotations

from procsim.models import ProcessStatus
from procsim.processor.ledger import ItemLedger
from procsim.processor.machine import StateMachine, invalid_state, not_found
from procsim.processor.outcomes import ActionOutcome, ItemOutcome
from procsim.utils.logging import get_logger
from procsim.utils.result import Err, ErrorCode, Ok, ProcessError, Result

logger = get_logger("processor.sequential")


class SequentialDriver:
    """Claims the next remaining item and records it as processed."""

    def __init__(self, machine: StateMachine, ledger: ItemLedger) -> None:
        self.machine = machine
        self.ledger = ledger

    async def process_next_item(self, process_id: str) -> Result[ActionOutcome, ProcessError]:
        """
        Process the next remaining item of a running process.

        When nothing remains the process is completed instead.

        Returns:
            Result with the processed item, or a completion outcome
        """
        process = await self.ledger.fetch(process_id)
        if process is None:
            return Err(not_found(process_id))

        if process.status != ProcessStatus.RUNNING:
            return Err(invalid_state(process_id, "process item in", process.status))

        item = self.ledger.claim_next(process)
        if item is None:
            result = await self.machine.complete(process_id)
            if result.is_err():
                return result
            return Ok(ActionOutcome(
                message="All items processed, process completed",
                outcome=ItemOutcome.PROCESS_COMPLETED,
            ))

        modified = await self.ledger.mark_processed(
            process_id,
            item,
            require_status=ProcessStatus.RUNNING,
        )

        if modified == 0:
            current = await self.ledger.fetch(process_id)
            if current is None:
                return Err(not_found(process_id))
            if current.status != ProcessStatus.RUNNING:
                return Err(invalid_state(process_id, "process item in", current.status))

            logger.warning("sequential_update_lost", process_id=process_id, item=item)
            return Err(ProcessError(
                code=ErrorCode.CONCURRENT_UPDATE_LOST,
                message=f"Item {item} was processed concurrently; retry to claim the next item",
                process_id=process_id,
                item=item,
            ))

        logger.info("item_processed", process_id=process_id, item=item, path="sequential")
        return Ok(ActionOutcome(
            message=f"Item {item} processed successfully",
            processed_item=item,
            outcome=ItemOutcome.PROCESSED,
        ))
