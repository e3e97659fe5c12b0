"""Lifecycle transition table for processes."""

from __future__ import annotations

from enum import Enum, auto

from procsim.models.status import ProcessStatus


class ProcessEvent(Enum):
    """Events that trigger status transitions."""

    START = auto()
    ITEMS_EXHAUSTED = auto()
    PROCESSING_FAILED = auto()
    CANCEL = auto()
    CANCEL_WITH_REVERT = auto()


# (from_state, event) -> to_state
TRANSITIONS: dict[tuple[ProcessStatus, ProcessEvent], ProcessStatus] = {
    (ProcessStatus.NOT_STARTED, ProcessEvent.START): ProcessStatus.RUNNING,
    (ProcessStatus.RUNNING, ProcessEvent.ITEMS_EXHAUSTED): ProcessStatus.COMPLETED,
    (ProcessStatus.RUNNING, ProcessEvent.PROCESSING_FAILED): ProcessStatus.FAILED,
    (ProcessStatus.RUNNING, ProcessEvent.CANCEL): ProcessStatus.CANCELLED,
    (ProcessStatus.RUNNING, ProcessEvent.CANCEL_WITH_REVERT): ProcessStatus.CANCELLED_WITH_REVERT,
}


def target_state(from_state: ProcessStatus, event: ProcessEvent) -> ProcessStatus:
    """
    Resolve the destination status for an event.

    Raises:
        TransitionError: If the event is not allowed from from_state
    """
    try:
        return TRANSITIONS[(from_state, event)]
    except KeyError:
        raise TransitionError(from_state, event) from None


class TransitionError(Exception):
    """Invalid state transition."""

    def __init__(self, from_state: ProcessStatus, event: ProcessEvent) -> None:
        self.from_state = from_state
        self.event = event
        super().__init__(
            f"Invalid transition: {event.name} from {from_state.value}"
        )
