"""Process status enumeration."""

from __future__ import annotations

from enum import Enum
from typing import Union


class ProcessStatus(str, Enum):
    """States a process moves through."""

    # Initial state
    NOT_STARTED = "NotStarted"

    RUNNING = "Running"

    # Terminal states
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    CANCELLED_WITH_REVERT = "CancelledWithRevert"
    REVERT_FAILED = "RevertFailed"
    FAILED = "Failed"

    def is_terminal(self) -> bool:
        """Check if this is a terminal state."""
        return self in TERMINAL_STATES

    @classmethod
    def parse(cls, value: Union[str, int, "ProcessStatus"]) -> "ProcessStatus":
        """
        Parse a status from its name or its legacy numeric code.

        Numeric codes follow the declaration order above, so older
        records that stored the enum ordinal still load.

        Raises:
            ValueError: If the value matches no status
        """
        if isinstance(value, ProcessStatus):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Unknown process status: {value!r}")
        if isinstance(value, int):
            members = list(cls)
            if 0 <= value < len(members):
                return members[value]
            raise ValueError(f"Unknown numeric process status: {value}")
        if isinstance(value, str):
            for member in cls:
                if value in (member.value, member.name):
                    return member
        raise ValueError(f"Unknown process status: {value!r}")


TERMINAL_STATES = frozenset({
    ProcessStatus.COMPLETED,
    ProcessStatus.FAILED,
    ProcessStatus.CANCELLED,
    ProcessStatus.CANCELLED_WITH_REVERT,
    ProcessStatus.REVERT_FAILED,
})
