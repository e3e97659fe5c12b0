"""Shared pytest fixtures for procsim tests."""

import pytest

from procsim.config import EngineConfig
from procsim.processor import ProcessService
from procsim.store import InMemoryProcessStore


@pytest.fixture
def store() -> InMemoryProcessStore:
    """Fresh in-memory store."""
    return InMemoryProcessStore()


@pytest.fixture
def config() -> EngineConfig:
    """Config with no simulated delay."""
    return EngineConfig(parallelism=2, work_delay=0.0)


@pytest.fixture
def service(store, config) -> ProcessService:
    """Service with the default (instant) simulated worker."""
    return ProcessService(store, config)
