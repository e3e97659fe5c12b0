"""In-memory process store with field-level atomic updates."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

from procsim.models import Process, ProcessStatus
from procsim.store.base import ProcessStore
from procsim.utils.logging import get_logger

logger = get_logger("store.memory")


class InMemoryProcessStore(ProcessStore):
    """
    Process store backed by a dict.

    A single asyncio.Lock serialises every read-modify-write so each
    update method behaves like one atomic document update. Updates are
    applied to a copy of the document and only swapped in once
    `_persist` accepts the new state. Snapshots handed out are deep
    copies; callers never share state with the store.
    """

    def __init__(self) -> None:
        self._documents: dict[str, Process] = {}
        self._lock = asyncio.Lock()

    async def find_by_id(self, process_id: str) -> Optional[Process]:
        async with self._lock:
            doc = self._documents.get(process_id)
            return doc.copy() if doc else None

    async def list_all(self) -> list[Process]:
        async with self._lock:
            docs = sorted(self._documents.values(), key=lambda p: p.created_at)
            return [doc.copy() for doc in docs]

    async def insert(self, process: Process) -> None:
        async with self._lock:
            if process.id in self._documents:
                raise KeyError(f"Process already exists: {process.id}")
            self._commit(process.copy())

        logger.debug("process_inserted", process_id=process.id)

    async def update_status(
        self,
        process_id: str,
        new_status: ProcessStatus,
        updated_at: datetime,
        expected: Optional[ProcessStatus] = None,
    ) -> int:
        async with self._lock:
            doc = self._documents.get(process_id)
            if doc is None:
                return 0
            if expected is not None and doc.status != expected:
                return 0

            doc = doc.copy()
            doc.status = new_status
            doc.updated_at = updated_at
            self._commit(doc)
            return 1

    async def append_processed(
        self,
        process_id: str,
        item: int,
        updated_at: datetime,
        unique: bool = False,
        require_status: Optional[ProcessStatus] = None,
    ) -> int:
        async with self._lock:
            doc = self._documents.get(process_id)
            if doc is None:
                return 0
            if require_status is not None and doc.status != require_status:
                return 0
            if unique and item in doc.processed_items:
                return 0

            doc = doc.copy()
            doc.processed_items.append(item)
            doc.updated_at = updated_at
            self._commit(doc)
            return 1

    async def pull_item_add_processed(
        self,
        process_id: str,
        item: int,
        updated_at: datetime,
    ) -> int:
        async with self._lock:
            doc = self._documents.get(process_id)
            if doc is None:
                return 0

            pulled = item in doc.items
            added = item not in doc.processed_items
            if not (pulled or added):
                return 0

            doc = doc.copy()
            doc.items = [i for i in doc.items if i != item]
            if added:
                doc.processed_items.append(item)
            doc.updated_at = updated_at
            self._commit(doc)
            return 1

    def _commit(self, doc: Process) -> None:
        """Persist the state with `doc` replaced, then make it current."""
        documents = dict(self._documents)
        documents[doc.id] = doc
        self._persist(documents)
        self._documents = documents

    def _persist(self, documents: dict[str, Process]) -> None:
        """
        Hook run under the lock before an update becomes visible.

        Raises:
            StoreError: If the new state cannot be saved
        """
        pass
