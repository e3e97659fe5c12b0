"""Process lifecycle engine.

A process moves through a small set of statuses:

    NotStarted -> Running -> Completed | Failed | Cancelled | CancelledWithRevert

Items are advanced by one of three paths that can run against the same
process at once: the background driver launched at start, the
sequential one-item-per-call driver, and manual processing of a named
item. All of them write through single atomic store updates and detect
lost races from the modified-document count.
"""

from procsim.processor.background import BackgroundDriver, partition
from procsim.processor.ledger import ItemLedger
from procsim.processor.machine import StateMachine
from procsim.processor.manual import ManualItemProcessor
from procsim.processor.outcomes import ActionOutcome, ActionResult, ItemOutcome
from procsim.processor.sequential import SequentialDriver
from procsim.processor.service import ProcessService
from procsim.processor.states import (
    TRANSITIONS,
    ProcessEvent,
    TransitionError,
    target_state,
)
from procsim.processor.work import ItemWorker, SimulatedWork

__all__ = [
    # States
    "ProcessEvent",
    "TransitionError",
    "TRANSITIONS",
    "target_state",
    # Components
    "StateMachine",
    "ItemLedger",
    "SequentialDriver",
    "BackgroundDriver",
    "ManualItemProcessor",
    "partition",
    # Work
    "ItemWorker",
    "SimulatedWork",
    # Results
    "ActionOutcome",
    "ActionResult",
    "ItemOutcome",
    # Service
    "ProcessService",
]
