"""Abstract persistence contract for process documents."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from procsim.models import Process, ProcessStatus


class StoreError(Exception):
    """Raised when an update cannot be persisted. The update is not applied."""

    pass


class ProcessStore(ABC):
    """
    Keyed document store holding one record per process.

    Every mutating operation is a single atomic update scoped to one
    process id and reports how many documents it actually modified
    (0 or 1). A zero count means the filter matched nothing or the
    update changed nothing; callers treat that as a lost race and
    re-read instead of assuming the write failed. A write that cannot
    be persisted raises StoreError and leaves the document unchanged.
    """

    @abstractmethod
    async def find_by_id(self, process_id: str) -> Optional[Process]:
        """Return a snapshot of the process, or None if absent."""
        ...

    @abstractmethod
    async def list_all(self) -> list[Process]:
        """Return snapshots of every process, oldest first."""
        ...

    @abstractmethod
    async def insert(self, process: Process) -> None:
        """
        Insert a new process.

        Raises:
            KeyError: If a process with the same id already exists
        """
        ...

    @abstractmethod
    async def update_status(
        self,
        process_id: str,
        new_status: ProcessStatus,
        updated_at: datetime,
        expected: Optional[ProcessStatus] = None,
    ) -> int:
        """
        Set the status and timestamp.

        Args:
            process_id: Process to update
            new_status: Status to store
            updated_at: New value for updatedAt
            expected: Only apply when the current status equals this

        Returns:
            Modified document count
        """
        ...

    @abstractmethod
    async def append_processed(
        self,
        process_id: str,
        item: int,
        updated_at: datetime,
        unique: bool = False,
        require_status: Optional[ProcessStatus] = None,
    ) -> int:
        """
        Push an item onto processedItems and refresh updatedAt.

        Args:
            process_id: Process to update
            item: Item value to append
            updated_at: New value for updatedAt
            unique: Add only if the item is absent (add-to-set)
            require_status: Only apply while the process has this status

        Returns:
            Modified document count
        """
        ...

    @abstractmethod
    async def pull_item_add_processed(
        self,
        process_id: str,
        item: int,
        updated_at: datetime,
    ) -> int:
        """
        Remove every occurrence of item from items and add it to
        processedItems if absent, in one update.

        Returns:
            Modified document count (0 when neither list changed)
        """
        ...
