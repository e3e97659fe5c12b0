"""Status transitions for processes, persisted through the store."""

from __future__ import annotations

from typing import Iterable

from procsim.models import Process, ProcessStatus, utcnow
from procsim.processor.outcomes import ActionOutcome
from procsim.processor.states import ProcessEvent, TransitionError, target_state
from procsim.store.base import ProcessStore
from procsim.utils.logging import get_logger
from procsim.utils.result import Err, ErrorCode, Ok, ProcessError, Result

logger = get_logger("processor.machine")

# Verb used in "Cannot <verb> process with status X" messages
_EVENT_VERBS = {
    ProcessEvent.START: "start",
    ProcessEvent.ITEMS_EXHAUSTED: "complete",
    ProcessEvent.PROCESSING_FAILED: "fail",
    ProcessEvent.CANCEL: "cancel",
    ProcessEvent.CANCEL_WITH_REVERT: "cancel",
}


def not_found(process_id: str) -> ProcessError:
    return ProcessError(
        code=ErrorCode.NOT_FOUND,
        message="Process not found",
        process_id=process_id,
    )


def invalid_state(process_id: str, verb: str, status: ProcessStatus) -> ProcessError:
    return ProcessError(
        code=ErrorCode.INVALID_STATE,
        message=f"Cannot {verb} process with status {status.value}",
        process_id=process_id,
    )


class StateMachine:
    """
    Validates and performs process status transitions.

    Every transition looks the process up, checks the current status
    against the transition table and then writes the new status with a
    compare-and-set on the status it read. A rejected transition never
    touches the stored document.
    """

    def __init__(self, store: ProcessStore) -> None:
        self.store = store

    async def create(self, items: Iterable[int]) -> Result[Process, ProcessError]:
        """
        Create a process in NotStarted with the given items.

        Returns:
            Result with the stored process or a validation error
        """
        items = list(items)
        bad = [i for i in items if isinstance(i, bool) or not isinstance(i, int)]
        if bad:
            return Err(ProcessError(
                code=ErrorCode.VALIDATION,
                message=f"Items must be integers, got {bad[0]!r}",
            ))

        process = Process.new(items)
        await self.store.insert(process)

        logger.info("process_created", process_id=process.id, items=len(items))
        return Ok(process)

    async def start(self, process_id: str) -> Result[ActionOutcome, ProcessError]:
        result = await self.fire(process_id, ProcessEvent.START)
        if result.is_err():
            return result
        return Ok(ActionOutcome(message="Process started successfully"))

    async def cancel(self, process_id: str, revert: bool = False) -> Result[ActionOutcome, ProcessError]:
        """
        Cancel a running process.

        The revert flag only selects the terminal status; processed
        items are left as they are.
        """
        event = ProcessEvent.CANCEL_WITH_REVERT if revert else ProcessEvent.CANCEL
        result = await self.fire(process_id, event)
        if result.is_err():
            return result
        return Ok(ActionOutcome(
            message=f"Process cancelled successfully with {'revert' if revert else 'no revert'}",
        ))

    async def complete(self, process_id: str) -> Result[Process, ProcessError]:
        return await self.fire(process_id, ProcessEvent.ITEMS_EXHAUSTED)

    async def fail(self, process_id: str) -> Result[Process, ProcessError]:
        return await self.fire(process_id, ProcessEvent.PROCESSING_FAILED)

    async def fire(self, process_id: str, event: ProcessEvent) -> Result[Process, ProcessError]:
        """
        Apply an event to a process.

        Args:
            process_id: Process identifier
            event: Lifecycle event

        Returns:
            Result with the updated process snapshot, NotFound, or
            InvalidState carrying the current status
        """
        verb = _EVENT_VERBS[event]

        process = await self.store.find_by_id(process_id)
        if process is None:
            return Err(not_found(process_id))

        try:
            new_status = target_state(process.status, event)
        except TransitionError:
            logger.info(
                "transition_rejected",
                process_id=process_id,
                transition=event.name,
                status=process.status.value,
            )
            return Err(invalid_state(process_id, verb, process.status))

        updated_at = utcnow()
        modified = await self.store.update_status(
            process_id,
            new_status,
            updated_at,
            expected=process.status,
        )

        if modified == 0:
            # Status moved between our read and the write
            current = await self.store.find_by_id(process_id)
            if current is None:
                return Err(not_found(process_id))
            logger.warning(
                "transition_lost_race",
                process_id=process_id,
                transition=event.name,
                status=current.status.value,
            )
            return Err(invalid_state(process_id, verb, current.status))

        logger.info(
            "state_transition",
            process_id=process_id,
            from_state=process.status.value,
            to_state=new_status.value,
        )

        process.status = new_status
        process.updated_at = updated_at
        return Ok(process)
