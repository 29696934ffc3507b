"""Tests for the queue service and its workers."""

import asyncio

import pytest
from unittest.mock import AsyncMock

from entity_sync.core.exceptions import EntityNotFoundError
from entity_sync.services import (
    EXPORT_LOCAL_ENTITY_QUEUE,
    IMPORT_LIST_QUEUE,
    ExportLocalEntityWorker,
    ImportListWorker,
    QueueService,
)


class TestQueueService:
    """Test queueing and processing of items."""

    @pytest.mark.asyncio
    async def test_process_queue(self):
        service = QueueService()
        worker = AsyncMock()
        service.register_worker("jobs", worker)
        for number in range(3):
            await service.create_item("jobs", {"number": number})

        processed = await service.process_queue("jobs", limit=2)

        assert processed == 2
        assert service.size("jobs") == 1
        assert [call.args[0]["number"] for call in worker.process_item.await_args_list] == [0, 1]

    @pytest.mark.asyncio
    async def test_failing_item_does_not_block_queue(self):
        service = QueueService()
        worker = AsyncMock()
        worker.process_item.side_effect = [RuntimeError("boom"), None]
        service.register_worker("jobs", worker)
        await service.create_item("jobs", {"number": 1})
        await service.create_item("jobs", {"number": 2})

        assert await service.process_queue("jobs") == 2
        assert worker.process_item.await_count == 2

    @pytest.mark.asyncio
    async def test_process_item_without_worker(self):
        with pytest.raises(ValueError):
            await QueueService().process_item("jobs", {})

    @pytest.mark.asyncio
    async def test_background_processing(self):
        service = QueueService()
        done = asyncio.Event()

        class Worker:
            async def process_item(self, data):
                done.set()

        service.register_worker("jobs", Worker())
        await service.start_processing()
        await service.create_item("jobs", {"number": 1})

        await asyncio.wait_for(done.wait(), timeout=2)
        await service.stop_processing()

        assert service.size("jobs") == 0


class TestWorkers:
    """Test the import and export workers."""

    @pytest.mark.asyncio
    async def test_import_list_worker(self):
        manager = AsyncMock()
        worker = ImportListWorker(manager)

        await worker.process_item({"sync_id": "user", "filters": {"changed_start": 1}})

        manager.import_remote_list.assert_awaited_once_with("user", {"changed_start": 1}, {})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", [
        ["user"],
        {},
        {"sync_id": ""},
    ])
    async def test_invalid_items(self, data):
        with pytest.raises(ValueError):
            await ImportListWorker(AsyncMock()).process_item(data)

    @pytest.mark.asyncio
    async def test_export_worker_requires_entity(self, container):
        worker = ExportLocalEntityWorker(AsyncMock(), container.entity_store)

        with pytest.raises(ValueError):
            await worker.process_item({"sync_id": "user", "entity_id": 1})
        with pytest.raises(EntityNotFoundError):
            await worker.process_item({"sync_id": "user", "entity_type_id": "user", "entity_id": 1})

    @pytest.mark.asyncio
    async def test_queued_list_import(self, container, user_sync, remote_users, client_of):
        client_of(container).add(remote_users[0])
        await container.queue_service.create_item(IMPORT_LIST_QUEUE, {"sync_id": "user"})

        assert await container.queue_service.process_queue(IMPORT_LIST_QUEUE) == 1
        assert await container.entity_store.query_ids_by_field("user", "sync_remote_id", 1) == [1]

    def test_container_registers_workers(self, container):
        assert isinstance(container.queue_service._workers[IMPORT_LIST_QUEUE], ImportListWorker)
        assert isinstance(container.queue_service._workers[EXPORT_LOCAL_ENTITY_QUEUE], ExportLocalEntityWorker)
