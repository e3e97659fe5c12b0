"""Tests for manual processing of a named item."""

import asyncio

import pytest

from procsim.models import ProcessStatus
from procsim.processor import ItemOutcome, ProcessService
from procsim.utils.result import ErrorCode
from tests.helpers import RecordingWorker, RendezvousWorker


class TestProcessItemManually:
    """Tests for process_item_manually."""

    @pytest.mark.asyncio
    async def test_moves_item_to_processed(self, service):
        process_id = (await service.create_process([1, 2, 3])).unwrap().id

        result = await service.process_item_manually(process_id, 2)

        outcome = result.unwrap()
        assert outcome.processed_item == 2
        assert outcome.outcome is ItemOutcome.PROCESSED
        process = await service.get_process(process_id)
        assert process.items == [1, 3]
        assert process.processed_items == [2]
        assert process.status is ProcessStatus.NOT_STARTED

    @pytest.mark.asyncio
    async def test_second_call_is_idempotent(self, service):
        process_id = (await service.create_process([5])).unwrap().id

        await service.process_item_manually(process_id, 5)
        again = await service.process_item_manually(process_id, 5)

        assert again.is_ok()
        assert again.unwrap().outcome is ItemOutcome.ALREADY_PROCESSED
        assert again.unwrap().message == "Item number 5 was already processed."
        assert (await service.get_process(process_id)).processed_items == [5]

    @pytest.mark.asyncio
    async def test_works_on_terminal_process(self, service):
        process_id = (await service.create_process([1, 2])).unwrap().id
        await service.start_process(process_id, background=False)
        await service.cancel_process(process_id)

        result = await service.process_item_manually(process_id, 1)

        assert result.unwrap().outcome is ItemOutcome.PROCESSED
        assert (await service.get_process(process_id)).status is ProcessStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_item_processed_by_sequential_path_is_already_processed(self, service):
        process_id = (await service.create_process([1, 2])).unwrap().id
        await service.start_process(process_id, background=False)
        await service.process_next_item(process_id)

        result = await service.process_item_manually(process_id, 1)

        assert result.unwrap().outcome is ItemOutcome.ALREADY_PROCESSED
        assert (await service.get_process(process_id)).processed_items == [1]

    @pytest.mark.asyncio
    async def test_unknown_item(self, service):
        process_id = (await service.create_process([1])).unwrap().id

        result = await service.process_item_manually(process_id, 42)

        error = result.unwrap_err()
        assert error.code is ErrorCode.NOT_FOUND
        assert error.item == 42

    @pytest.mark.asyncio
    async def test_unknown_process(self, service):
        result = await service.process_item_manually("missing", 1)

        assert result.unwrap_err().code is ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_work_failure_leaves_item_untouched(self, store, config):
        service = ProcessService(store, config, worker=RecordingWorker(fail_on=(7,)))
        process_id = (await service.create_process([7, 8])).unwrap().id
        before = await service.get_process(process_id)

        result = await service.process_item_manually(process_id, 7)

        error = result.unwrap_err()
        assert error.code is ErrorCode.PROCESSING_FAILURE
        assert "boom on 7" in error.message
        after = await service.get_process(process_id)
        assert after.items == [7, 8]
        assert after.processed_items == []
        assert after.updated_at == before.updated_at

    @pytest.mark.asyncio
    async def test_concurrent_calls_record_item_once(self, store, config):
        service = ProcessService(store, config, worker=RendezvousWorker(parties=2))
        process_id = (await service.create_process([3, 4])).unwrap().id

        first, second = await asyncio.gather(
            service.process_item_manually(process_id, 3),
            service.process_item_manually(process_id, 3),
        )

        outcomes = sorted([first.unwrap().outcome.value, second.unwrap().outcome.value])
        assert outcomes == sorted([
            ItemOutcome.PROCESSED.value,
            ItemOutcome.PROCESSED_CONCURRENTLY.value,
        ])
        process = await service.get_process(process_id)
        assert process.processed_items == [3]
        assert process.items == [4]

    @pytest.mark.asyncio
    async def test_lost_update_without_item_recorded_fails(self, service, store, monkeypatch):
        process_id = (await service.create_process([1])).unwrap().id

        async def nothing_modified(pid, item, updated_at):
            return 0

        monkeypatch.setattr(store, "pull_item_add_processed", nothing_modified)

        result = await service.process_item_manually(process_id, 1)

        error = result.unwrap_err()
        assert error.code is ErrorCode.CONCURRENT_UPDATE_LOST
        assert error.message == "Failed to update item 1 status in the database."
