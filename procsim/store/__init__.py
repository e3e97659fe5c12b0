"""Persistence collaborators for process documents."""

from procsim.store.base import ProcessStore, StoreError
from procsim.store.json_file import JsonFileProcessStore
from procsim.store.memory import InMemoryProcessStore

__all__ = [
    "ProcessStore",
    "StoreError",
    "InMemoryProcessStore",
    "JsonFileProcessStore",
]
