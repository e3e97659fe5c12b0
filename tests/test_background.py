"""Tests for background processing."""

import asyncio

import pytest

from procsim.config import EngineConfig
from procsim.models import ProcessStatus, utcnow
from procsim.processor import ProcessService, partition
from tests.helpers import GatedWorker, RecordingWorker


async def _start(service, items):
    process_id = (await service.create_process(items)).unwrap().id
    result = await service.start_process(process_id)
    assert result.is_ok()
    return process_id


class TestPartition:
    """Tests for splitting items across workers."""

    def test_round_robin_disjoint_slices(self):
        assert partition([1, 2, 3, 4, 5], 2) == [[1, 3, 5], [2, 4]]

    def test_never_more_slices_than_items(self):
        assert partition([1, 2], 8) == [[1], [2]]

    def test_at_least_one_slice(self):
        assert partition([1, 2], 0) == [[1, 2]]


class TestBackgroundDriver:
    """Tests for the background driver."""

    @pytest.mark.asyncio
    async def test_processes_all_items_and_completes(self, store):
        worker = RecordingWorker(delay=0.001)
        service = ProcessService(store, EngineConfig(parallelism=3, work_delay=0), worker=worker)

        process_id = await _start(service, list(range(1, 11)))
        final = await service.wait_for_background(process_id)

        assert final is ProcessStatus.COMPLETED
        process = await service.get_process(process_id)
        assert process.status is ProcessStatus.COMPLETED
        assert sorted(process.processed_items) == list(range(1, 11))
        assert sorted(worker.calls) == list(range(1, 11))

    @pytest.mark.asyncio
    async def test_parallelism_is_bounded(self, store):
        worker = RecordingWorker(delay=0.01)
        service = ProcessService(store, EngineConfig(parallelism=3, work_delay=0), worker=worker)

        process_id = await _start(service, list(range(12)))
        await service.wait_for_background(process_id)

        assert 1 < worker.max_active <= 3

    @pytest.mark.asyncio
    async def test_start_returns_before_work_finishes(self, store, config):
        worker = GatedWorker()
        service = ProcessService(store, config, worker=worker)

        process_id = await _start(service, [1, 2])

        assert service.background.is_active(process_id)
        assert (await service.get_process(process_id)).status is ProcessStatus.RUNNING

        worker.release.set()
        assert await service.wait_for_background(process_id) is ProcessStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_empty_process_completes(self, service):
        process_id = await _start(service, [])

        assert await service.wait_for_background(process_id) is ProcessStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_failure_stops_new_work_and_fails_process(self, store):
        worker = RecordingWorker(fail_on=(2,))
        service = ProcessService(store, EngineConfig(parallelism=1, work_delay=0), worker=worker)

        process_id = await _start(service, [1, 2, 3])
        final = await service.wait_for_background(process_id)

        assert final is ProcessStatus.FAILED
        process = await service.get_process(process_id)
        assert process.status is ProcessStatus.FAILED
        assert process.processed_items == [1]
        assert worker.calls == [1, 2]

    @pytest.mark.asyncio
    async def test_cancel_mid_run_is_not_resurrected(self, store):
        worker = GatedWorker()
        service = ProcessService(store, EngineConfig(parallelism=1, work_delay=0), worker=worker)

        process_id = await _start(service, [1, 2, 3])
        await asyncio.wait_for(worker.started.wait(), timeout=1)

        cancelled = await service.cancel_process(process_id, revert=True)
        worker.release.set()
        final = await service.wait_for_background(process_id)

        assert cancelled.is_ok()
        assert final is ProcessStatus.CANCELLED_WITH_REVERT
        process = await service.get_process(process_id)
        assert process.status is ProcessStatus.CANCELLED_WITH_REVERT
        assert process.processed_items == []
        assert worker.calls == [1]

    @pytest.mark.asyncio
    async def test_cancel_after_last_write_is_not_completed(self, store, monkeypatch):
        service = ProcessService(store, EngineConfig(parallelism=2, work_delay=0))
        process_id = (await service.create_process([1, 2])).unwrap().id
        real_append = store.append_processed

        async def append_then_cancel_on_last(process_id, item, updated_at, **kwargs):
            modified = await real_append(process_id, item, updated_at, **kwargs)
            current = await store.find_by_id(process_id)
            if not current.remaining_items:
                cancelled = await service.cancel_process(process_id)
                assert cancelled.is_ok()
            return modified

        monkeypatch.setattr(store, "append_processed", append_then_cancel_on_last)

        assert (await service.start_process(process_id)).is_ok()
        final = await service.wait_for_background(process_id)

        assert final is ProcessStatus.CANCELLED
        process = await service.get_process(process_id)
        assert process.status is ProcessStatus.CANCELLED
        assert sorted(process.processed_items) == [1, 2]

    @pytest.mark.asyncio
    async def test_items_recorded_elsewhere_are_not_duplicated(self, store):
        worker = GatedWorker()
        service = ProcessService(store, EngineConfig(parallelism=1, work_delay=0), worker=worker)
        process_id = (await service.create_process([1, 2])).unwrap().id
        await service.start_process(process_id)
        await asyncio.wait_for(worker.started.wait(), timeout=1)

        # Item 1 is in flight; record it out of band first
        await store.pull_item_add_processed(process_id, 1, utcnow())
        worker.release.set()
        final = await service.wait_for_background(process_id)

        assert final is ProcessStatus.COMPLETED
        process = await service.get_process(process_id)
        assert sorted(process.processed_items) == [1, 2]

    @pytest.mark.asyncio
    async def test_shutdown_cancels_active_runs(self, store, config):
        worker = GatedWorker()
        service = ProcessService(store, config, worker=worker)
        process_id = await _start(service, [1])
        await asyncio.wait_for(worker.started.wait(), timeout=1)

        await service.shutdown()

        assert not service.background.is_active(process_id)
        assert (await service.get_process(process_id)).status is ProcessStatus.RUNNING

    @pytest.mark.asyncio
    async def test_run_on_not_running_process_does_nothing(self, service):
        process_id = (await service.create_process([1])).unwrap().id

        final = await service.background.run(process_id)

        assert final is ProcessStatus.NOT_STARTED
        assert (await service.get_process(process_id)).processed_items == []

    @pytest.mark.asyncio
    async def test_run_on_missing_process(self, service):
        assert await service.background.run("missing") is None
