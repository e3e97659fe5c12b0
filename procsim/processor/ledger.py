"""Remaining/processed bookkeeping for process items."""

from __future__ import annotations

from typing import Optional

from procsim.models import Process, ProcessStatus, utcnow
from procsim.store.base import ProcessStore


class ItemLedger:
    """
    Decides the next unit of work and records items as processed.

    Every write goes through one atomic store update. A zero modified
    count means another writer got there first; callers re-read with
    ``fetch`` rather than treating it as a hard failure.
    """

    def __init__(self, store: ProcessStore) -> None:
        self.store = store

    @staticmethod
    def claim_next(process: Process) -> Optional[int]:
        """
        First item in list order that is not yet processed.

        Single-writer only: two callers claiming from the same snapshot
        get the same item.
        """
        processed = set(process.processed_items)
        for item in process.items:
            if item not in processed:
                return item
        return None

    async def mark_processed(
        self,
        process_id: str,
        item: int,
        move: bool = False,
        unique: bool = True,
        require_status: Optional[ProcessStatus] = None,
    ) -> int:
        """
        Record an item as processed.

        Args:
            process_id: Process identifier
            item: Item value
            move: Also remove the item from items (pull + add-to-set)
            unique: Skip the append if already present
            require_status: Only write while the process has this status

        Returns:
            Modified document count
        """
        updated_at = utcnow()
        if move:
            return await self.store.pull_item_add_processed(process_id, item, updated_at)
        return await self.store.append_processed(
            process_id,
            item,
            updated_at,
            unique=unique,
            require_status=require_status,
        )

    async def fetch(self, process_id: str) -> Optional[Process]:
        """Re-read current state after a lost race."""
        return await self.store.find_by_id(process_id)
