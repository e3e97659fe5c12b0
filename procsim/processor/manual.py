"""Out-of-band processing of one named item."""

from __future__ import annotations

from procsim.processor.ledger import ItemLedger
from procsim.processor.outcomes import ActionOutcome, ItemOutcome
from procsim.processor.work import ItemWorker
from procsim.utils.logging import get_logger
from procsim.utils.result import Err, ErrorCode, Ok, ProcessError, Result

logger = get_logger("processor.manual")


class ManualItemProcessor:
    """
    Processes a specific item on request, whatever the process status.

    Idempotent: asking for an item that is already processed succeeds
    with an advisory message. Two concurrent calls for the same item
    both succeed, and the item is recorded exactly once.
    """

    def __init__(self, ledger: ItemLedger, worker: ItemWorker) -> None:
        self.ledger = ledger
        self.worker = worker

    async def process_item(self, process_id: str, item: int) -> Result[ActionOutcome, ProcessError]:
        logger.info("manual_processing_requested", process_id=process_id, item=item)

        process = await self.ledger.fetch(process_id)
        if process is None:
            logger.warning("process_not_found", process_id=process_id)
            return Err(ProcessError(
                code=ErrorCode.NOT_FOUND,
                message=f"Process with ID {process_id} not found.",
                process_id=process_id,
            ))

        # Sequential and background paths record items without pulling them
        # from items, so processedItems is checked first
        if item in process.processed_items:
            logger.info("item_already_processed", process_id=process_id, item=item)
            return Ok(ActionOutcome(
                message=f"Item number {item} was already processed.",
                processed_item=item,
                outcome=ItemOutcome.ALREADY_PROCESSED,
            ))

        if item not in process.items:
            logger.warning("item_not_found", process_id=process_id, item=item)
            return Err(ProcessError(
                code=ErrorCode.NOT_FOUND,
                message=f"Item number {item} not found in process {process_id}.",
                process_id=process_id,
                item=item,
            ))

        try:
            await self.worker(process_id, item)
        except Exception as e:
            # Nothing has been written; the item stays in items
            logger.error(
                "manual_processing_failed",
                process_id=process_id,
                item=item,
                error=str(e),
                error_type=type(e).__name__,
            )
            return Err(ProcessError(
                code=ErrorCode.PROCESSING_FAILURE,
                message=f"An error occurred while processing item {item}: {e}",
                process_id=process_id,
                item=item,
            ))

        modified = await self.ledger.mark_processed(process_id, item, move=True)

        if modified == 0:
            logger.warning("manual_update_lost", process_id=process_id, item=item)
            current = await self.ledger.fetch(process_id)
            if current is not None and item in current.processed_items:
                return Ok(ActionOutcome(
                    message=f"Item number {item} was processed concurrently.",
                    processed_item=item,
                    outcome=ItemOutcome.PROCESSED_CONCURRENTLY,
                ))
            return Err(ProcessError(
                code=ErrorCode.CONCURRENT_UPDATE_LOST,
                message=f"Failed to update item {item} status in the database.",
                process_id=process_id,
                item=item,
            ))

        logger.info("item_processed", process_id=process_id, item=item, path="manual")
        return Ok(ActionOutcome(
            message=f"Item number {item} processed successfully.",
            processed_item=item,
            outcome=ItemOutcome.PROCESSED,
        ))
