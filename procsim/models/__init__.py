"""Data models for procsim."""

from procsim.models.process import Process, new_process_id, utcnow
from procsim.models.status import TERMINAL_STATES, ProcessStatus

__all__ = [
    "Process",
    "ProcessStatus",
    "TERMINAL_STATES",
    "new_process_id",
    "utcnow",
]
