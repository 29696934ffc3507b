"""Tests for managed operation state: windows, last runs and locks."""

import asyncio

import pytest

from entity_sync.clients import ClientError
from entity_sync.core.exceptions import ConfigurationError
from entity_sync.events import ImportEvents
from entity_sync.models import Operation, RunRecord
from entity_sync.subscribers import LOCKED_MESSAGE


NOW = 1700000000


@pytest.fixture
def managed_sync(container, managed_definition):
    return container.config_manager.add_sync(managed_definition)


def set_list_state(definition, **state):
    definition["operations"]["import_list"]["state"].update(state)


class TestManagedWindow:
    """Test the changed time window of managed list imports."""

    @pytest.mark.asyncio
    async def test_first_run_ends_at_request_time(self, container, managed_sync, client_of):
        client = client_of(container)

        await container.import_manager.import_remote_list("user")

        assert client.list_calls[0][0] == {"changed_end": NOW}
        last_run = await container.state_manager.get_last_run("user", Operation.IMPORT_LIST)
        assert last_run == RunRecord(run_time=NOW, start_time=None, end_time=NOW)
        assert await container.state_manager.get_current_run("user", Operation.IMPORT_LIST) is None

    @pytest.mark.asyncio
    async def test_next_run_starts_where_last_ended(self, container, managed_sync, client_of, clock):
        client = client_of(container)
        await container.import_manager.import_remote_list("user")

        clock.now = NOW + 100
        await container.import_manager.import_remote_list("user")

        assert client.list_calls[1][0] == {"changed_start": NOW, "changed_end": NOW + 100}
        last_run = await container.state_manager.get_last_run("user", Operation.IMPORT_LIST)
        assert last_run.start_time == NOW
        assert last_run.end_time == NOW + 100

    @pytest.mark.asyncio
    async def test_max_interval_from_fallback_start(self, container, managed_definition, client_of):
        set_list_state(managed_definition, fallback_start_time=1000, max_interval=500)
        container.config_manager.add_sync(managed_definition)

        await container.import_manager.import_remote_list("user")

        assert client_of(container).list_calls[0][0] == {"changed_start": 1000, "changed_end": 1500}

    @pytest.mark.asyncio
    async def test_max_interval_capped_at_request_time(self, container, managed_definition, client_of):
        set_list_state(managed_definition, fallback_start_time=NOW - 10, max_interval=500)
        container.config_manager.add_sync(managed_definition)

        await container.import_manager.import_remote_list("user")

        assert client_of(container).list_calls[0][0] == {"changed_start": NOW - 10, "changed_end": NOW}

    @pytest.mark.asyncio
    async def test_max_interval_without_start_time(self, container, managed_definition, client_of):
        set_list_state(managed_definition, max_interval=500)
        container.config_manager.add_sync(managed_definition)

        with pytest.raises(ConfigurationError):
            await container.import_manager.import_remote_list("user")

        assert client_of(container).list_calls == []
        assert not await container.state_manager.is_locked("user", Operation.IMPORT_LIST)

    @pytest.mark.asyncio
    async def test_caller_filters_are_kept(self, container, managed_sync, client_of):
        await container.import_manager.import_remote_list(
            "user", {"changed_start": 5, "changed_end": 10}
        )

        assert client_of(container).list_calls[0][0] == {"changed_start": 5, "changed_end": 10}
        last_run = await container.state_manager.get_last_run("user", Operation.IMPORT_LIST)
        assert (last_run.start_time, last_run.end_time) == (5, 10)

    @pytest.mark.asyncio
    async def test_unmanaged_sync_not_filtered(self, container, user_sync, client_of):
        await container.import_manager.import_remote_list("user")

        assert client_of(container).list_calls[0][0] == {}
        assert await container.state_manager.get_last_run("user", Operation.IMPORT_LIST) is None


class TestManagedLock:
    """Test locking of managed operations."""

    @pytest.mark.asyncio
    async def test_lock_released_after_run(self, container, managed_sync):
        await container.import_manager.import_remote_list("user")

        assert not await container.state_manager.is_locked("user", Operation.IMPORT_LIST)

    @pytest.mark.asyncio
    async def test_locked_operation_cancelled(self, container, managed_sync, client_of):
        cancelled = []

        def record(event):
            cancelled.extend(event.messages)

        container.dispatcher.subscribe(ImportEvents.REMOTE_LIST_PRE_INITIATE, record, -2000)
        await container.state_manager.lock("user", Operation.IMPORT_LIST)

        await container.import_manager.import_remote_list("user")

        assert client_of(container).list_calls == []
        assert cancelled == [LOCKED_MESSAGE]
        # A lock this run did not acquire is left in place.
        assert await container.state_manager.is_locked("user", Operation.IMPORT_LIST)

    @pytest.mark.asyncio
    async def test_concurrent_runs_do_not_overlap(self, container, managed_sync, client_of):
        client = client_of(container)
        client.list_gate = asyncio.Event()

        first = asyncio.create_task(container.import_manager.import_remote_list("user"))
        await client.list_started.wait()
        assert await container.state_manager.is_locked("user", Operation.IMPORT_LIST)

        await container.import_manager.import_remote_list("user")
        assert len(client.list_calls) == 1

        client.list_gate.set()
        await first

        assert len(client.list_calls) == 1
        assert not await container.state_manager.is_locked("user", Operation.IMPORT_LIST)

    @pytest.mark.asyncio
    async def test_failed_run_releases_lock_without_last_run(self, container, managed_sync, client_of):
        client_of(container).list_error = ClientError("unavailable", status_code=503)

        with pytest.raises(ClientError):
            await container.import_manager.import_remote_list("user")

        assert not await container.state_manager.is_locked("user", Operation.IMPORT_LIST)
        assert await container.state_manager.get_last_run("user", Operation.IMPORT_LIST) is None

    @pytest.mark.asyncio
    async def test_entity_import_locked(self, container, managed_sync, remote_users, client_of):
        client_of(container).add(remote_users[0])
        await container.state_manager.lock("user", Operation.IMPORT_ENTITY)

        assert await container.import_manager.import_remote_entity("user", 1) is None

        await container.state_manager.unlock("user", Operation.IMPORT_ENTITY)
        local_entity = await container.import_manager.import_remote_entity("user", 1)
        assert local_entity.get("name").value == "alice"
        assert not await container.state_manager.is_locked("user", Operation.IMPORT_ENTITY)

    @pytest.mark.asyncio
    async def test_unmanaged_lock_setting_ignored(self, container, sync_definition, client_of):
        sync_definition["operations"]["import_list"]["state"] = {"lock": True}
        container.config_manager.add_sync(sync_definition)
        await container.state_manager.lock("user", Operation.IMPORT_LIST)

        await container.import_manager.import_remote_list("user")

        assert len(client_of(container).list_calls) == 1
