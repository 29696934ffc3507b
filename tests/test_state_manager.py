"""Tests for operation state tracking."""

import pytest

from entity_sync.core.exceptions import ConfigurationError
from entity_sync.models import Operation, RunRecord
from entity_sync.services import StateManager
from entity_sync.storage import MemoryKeyValueStore


@pytest.fixture
def state_manager(container):
    return StateManager(container.config_manager, MemoryKeyValueStore(), "test.state")


class TestStateManager:
    """Test last run, current run and lock state."""

    @pytest.mark.asyncio
    async def test_empty_state(self, state_manager):
        state = await state_manager.get("user", Operation.IMPORT_LIST)

        assert state.sync_id == "user"
        assert state.operation == "import_list"
        assert state.last_run is None
        assert state.current_run is None
        assert state.locked is False

    @pytest.mark.asyncio
    async def test_last_run(self, state_manager):
        await state_manager.set_last_run("user", Operation.IMPORT_LIST, 30, 10, 20)

        assert await state_manager.get_last_run("user", "import_list") == RunRecord(
            run_time=30, start_time=10, end_time=20
        )

        await state_manager.unset_last_run("user", Operation.IMPORT_LIST)
        assert await state_manager.get_last_run("user", Operation.IMPORT_LIST) is None

    @pytest.mark.asyncio
    async def test_state_kept_per_operation(self, state_manager):
        await state_manager.set_current_run("user", Operation.IMPORT_LIST, 1, None, 2)
        await state_manager.lock("user", Operation.EXPORT_ENTITY)

        assert await state_manager.get_current_run("user", Operation.IMPORT_ENTITY) is None
        assert not await state_manager.is_locked("user", Operation.IMPORT_LIST)
        assert await state_manager.is_locked("user", Operation.EXPORT_ENTITY)

    @pytest.mark.asyncio
    async def test_keys_in_sync_collection(self, state_manager):
        await state_manager.set_last_run("user", Operation.IMPORT_LIST, 30)
        await state_manager.lock("user", Operation.IMPORT_LIST)

        values = await state_manager.store.get_all("test.state.user")

        assert set(values) == {"import_list.last_run", "import_list.locked"}

    @pytest.mark.asyncio
    async def test_acquire_lock_once(self, state_manager):
        assert await state_manager.acquire_lock("user", Operation.IMPORT_LIST)
        assert not await state_manager.acquire_lock("user", Operation.IMPORT_LIST)

        await state_manager.unlock("user", Operation.IMPORT_LIST)
        assert await state_manager.acquire_lock("user", Operation.IMPORT_LIST)

    @pytest.mark.asyncio
    async def test_invalid_operation(self, state_manager):
        with pytest.raises(ConfigurationError):
            await state_manager.get_last_run("user", "delete_everything")

    def test_is_managed(self, container, managed_definition):
        managed_definition["operations"]["import_entity"]["state"] = {}
        container.config_manager.add_sync(managed_definition)

        assert container.state_manager.is_managed("user", Operation.IMPORT_LIST)
        assert not container.state_manager.is_managed("user", Operation.IMPORT_ENTITY)

    def test_default_collection_prefix(self, container):
        assert container.state_manager.collection("user") == "entity_sync.state.user"
