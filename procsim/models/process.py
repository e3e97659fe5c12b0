"""Process aggregate."""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from procsim.models.status import ProcessStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_process_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Process:
    """
    One batch of integer work items and its lifecycle status.

    Attributes:
        id: Opaque identifier, fixed at creation
        status: Current lifecycle status
        items: Work items in caller-supplied order
        processed_items: Items already processed, in processing order
        created_at: Creation timestamp (UTC)
        updated_at: Refreshed by every mutating operation
    """

    id: str
    status: ProcessStatus = ProcessStatus.NOT_STARTED
    items: list[int] = field(default_factory=list)
    processed_items: list[int] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def new(cls, items: list[int]) -> Process:
        """Build a fresh NotStarted process with an empty processed list."""
        now = utcnow()
        return cls(
            id=new_process_id(),
            status=ProcessStatus.NOT_STARTED,
            items=list(items),
            processed_items=[],
            created_at=now,
            updated_at=now,
        )

    @property
    def remaining_items(self) -> list[int]:
        """Items not yet processed, in list order."""
        processed = set(self.processed_items)
        return [item for item in self.items if item not in processed]

    @property
    def progress(self) -> float:
        """Fraction of distinct known items that have been processed."""
        known = set(self.items) | set(self.processed_items)
        if not known:
            return 1.0
        return len(set(self.processed_items)) / len(known)

    def copy(self) -> Process:
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "status": self.status.value,
            "items": list(self.items),
            "processedItems": list(self.processed_items),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Process:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            status=ProcessStatus.parse(data.get("status", ProcessStatus.NOT_STARTED)),
            items=[int(i) for i in data.get("items", [])],
            processed_items=[int(i) for i in data.get("processedItems", [])],
            created_at=_parse_timestamp(data.get("createdAt")),
            updated_at=_parse_timestamp(data.get("updatedAt")),
        )


def _parse_timestamp(value: Any) -> datetime:
    if not value:
        return utcnow()
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
