"""Process store persisted to a JSON snapshot file."""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from procsim.models import Process
from procsim.store.base import StoreError
from procsim.store.memory import InMemoryProcessStore
from procsim.utils.logging import get_logger

logger = get_logger("store.json_file")


class JsonFileProcessStore(InMemoryProcessStore):
    """
    In-memory store that snapshots itself to disk on every update.

    The snapshot is written to a temp file beside the target and renamed
    over it, so a crash mid-write leaves the previous snapshot intact.
    An update whose snapshot fails to save is not applied in memory
    either. State is loaded once at construction.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        """Load persisted processes from file."""
        if not self.path.exists():
            logger.debug("no_existing_state", path=str(self.path))
            return

        try:
            data = json.loads(self.path.read_text())
            for doc in data.get("processes", []):
                process = Process.from_dict(doc)
                self._documents[process.id] = process
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            # Start empty rather than half-loaded
            self._documents.clear()
            logger.warning("state_load_failed", path=str(self.path), error=str(e))
            return

        logger.info(
            "state_loaded",
            processes=len(self._documents),
            path=str(self.path),
        )

    def _persist(self, documents: dict[str, Process]) -> None:
        data = {
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "processes": [doc.to_dict() for doc in documents.values()],
        }
        self._write_snapshot(data)
        logger.debug("state_saved", path=str(self.path))

    def _write_snapshot(self, data: dict) -> None:
        """
        Atomically replace the snapshot file.

        Raises:
            StoreError: If the snapshot could not be written
        """
        temp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Same directory so the rename stays on one filesystem
            fd, name = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
            temp_path = Path(name)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
            temp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.error("state_save_failed", path=str(self.path), error=str(e))
            if temp_path is not None and temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    pass
            raise StoreError(f"Failed to save state to {self.path}: {e}") from e
