"""Success values and the caller-facing result shape."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from procsim.utils.result import ErrorCode, ProcessError, Result


class ItemOutcome(str, Enum):
    """How an item-processing call succeeded."""

    PROCESSED = "processed"
    ALREADY_PROCESSED = "already_processed"
    PROCESSED_CONCURRENTLY = "processed_concurrently"
    PROCESS_COMPLETED = "process_completed"


@dataclass(frozen=True)
class ActionOutcome:
    """Success value of a lifecycle or item operation."""

    message: str
    processed_item: Optional[int] = None
    outcome: Optional[ItemOutcome] = None


@dataclass(frozen=True)
class ActionResult:
    """
    Boolean success flag plus a human-readable message.

    This is what callers outside the core see; the error code is kept
    for diagnostics but the flag and message are the contract.
    """

    success: bool
    message: str
    processed_item: Optional[int] = None
    outcome: Optional[ItemOutcome] = None
    error_code: Optional[ErrorCode] = None

    @classmethod
    def from_result(cls, result: Result[ActionOutcome, ProcessError]) -> ActionResult:
        if result.is_ok():
            value = result.unwrap()
            return cls(
                success=True,
                message=value.message,
                processed_item=value.processed_item,
                outcome=value.outcome,
            )
        error = result.unwrap_err()
        return cls(
            success=False,
            message=error.message,
            processed_item=None,
            error_code=error.code,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
        }
        if self.processed_item is not None:
            data["processedItem"] = self.processed_item
        if self.outcome is not None:
            data["outcome"] = self.outcome.value
        if self.error_code is not None:
            data["error"] = self.error_code.value
        return data
