"""Tests for state and entity storage backends."""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId
from redis.exceptions import ConnectionError as RedisConnectionError

from entity_sync.core.exceptions import ConfigurationError
from entity_sync.storage import MemoryEntityStore, MemoryKeyValueStore, MongoEntityStore, RedisKeyValueStore


class TestMemoryKeyValueStore:
    """Test the in-memory key-value store."""

    @pytest.mark.asyncio
    async def test_collections_are_separate(self):
        store = MemoryKeyValueStore()
        await store.set("a", "key", 1)
        await store.set("b", "key", 2)

        assert await store.get("a", "key") == 1
        assert await store.get("b", "key") == 2
        assert await store.get("c", "key", "default") == "default"

    @pytest.mark.asyncio
    async def test_set_if_not_exists(self):
        store = MemoryKeyValueStore()

        assert await store.set_if_not_exists("a", "lock", True)
        assert not await store.set_if_not_exists("a", "lock", True)

        await store.delete("a", "lock")
        assert await store.get_all("a") == {}


class TestRedisKeyValueStore:
    """Test the Redis key-value store against a mocked client."""

    @pytest.fixture
    def redis_client(self):
        client = MagicMock()
        client.hget = AsyncMock(return_value=None)
        client.hset = AsyncMock()
        client.hsetnx = AsyncMock(return_value=1)
        client.hdel = AsyncMock()
        client.hgetall = AsyncMock(return_value={})
        client.aclose = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_values_stored_as_json(self, redis_client):
        store = RedisKeyValueStore(client=redis_client)

        await store.set("state.user", "import_list.last_run", {"run_time": 1})

        redis_client.hset.assert_called_once_with(
            "state.user", "import_list.last_run", json.dumps({"run_time": 1})
        )

    @pytest.mark.asyncio
    async def test_get_decodes_json(self, redis_client):
        redis_client.hget.return_value = '{"run_time": 1}'
        store = RedisKeyValueStore(client=redis_client)

        assert await store.get("state.user", "import_list.last_run") == {"run_time": 1}

    @pytest.mark.asyncio
    async def test_get_missing_returns_default(self, redis_client):
        store = RedisKeyValueStore(client=redis_client)

        assert await store.get("state.user", "missing", False) is False

    @pytest.mark.asyncio
    async def test_set_if_not_exists_uses_hsetnx(self, redis_client):
        redis_client.hsetnx.return_value = 0
        store = RedisKeyValueStore(client=redis_client)

        assert not await store.set_if_not_exists("state.user", "import_list.locked", True)
        redis_client.hsetnx.assert_called_once_with("state.user", "import_list.locked", "true")

    @pytest.mark.asyncio
    async def test_get_retries_connection_errors(self, redis_client):
        redis_client.hget.side_effect = [RedisConnectionError("reset"), '"value"']
        store = RedisKeyValueStore(client=redis_client)

        assert await store.get("state.user", "key") == "value"
        assert redis_client.hget.call_count == 2

    @pytest.mark.asyncio
    async def test_get_all(self, redis_client):
        redis_client.hgetall.return_value = {"import_list.locked": "true"}
        store = RedisKeyValueStore(client=redis_client)

        assert await store.get_all("state.user") == {"import_list.locked": True}

    @pytest.mark.asyncio
    async def test_close(self, redis_client):
        store = RedisKeyValueStore(client=redis_client)

        await store.close()

        redis_client.aclose.assert_called_once()

    def test_url_or_client_required(self):
        with pytest.raises(ValueError):
            RedisKeyValueStore()


class TestMemoryEntityStore:
    """Test the in-memory entity store."""

    @pytest.mark.asyncio
    async def test_save_assigns_ids_per_type(self, entity_types):
        store = MemoryEntityStore(entity_types)

        first = await store.save(store.create("user", values={"name": "a"}))
        second = await store.save(store.create("user", values={"name": "b"}))
        node = await store.save(store.create("node", "article"))

        assert (first.id, second.id, node.id) == (1, 2, 1)

    @pytest.mark.asyncio
    async def test_load_returns_copy(self, entity_types):
        store = MemoryEntityStore(entity_types)
        entity = await store.save(store.create("user", values={"name": "a"}))
        entity.set("name", "changed")

        loaded = await store.load("user", entity.id)

        assert loaded.get("name").value == "a"
        assert await store.load("user", 99) is None

    @pytest.mark.asyncio
    async def test_query_ids_by_field(self, entity_types):
        store = MemoryEntityStore(entity_types)
        for bundle in ("page", "article", "article"):
            await store.save(store.create("node", bundle, {"sync_remote_id": "r1"}))
        await store.save(store.create("node", "article", {"sync_remote_id": "r2"}))

        assert await store.query_ids_by_field("node", "sync_remote_id", "r1") == [1, 2, 3]
        assert await store.query_ids_by_field("node", "sync_remote_id", "r1", bundle="article") == [2, 3]
        assert await store.query_ids_by_field("node", "unknown", "r1") == []

    def test_unknown_type(self, entity_types):
        store = MemoryEntityStore(entity_types)

        with pytest.raises(ConfigurationError):
            store.create("comment")


class AsyncCursor:
    """Motor-like cursor over fixed documents."""

    def __init__(self, docs):
        self.docs = docs
        self.sort_args = None

    def sort(self, *args):
        self.sort_args = args
        return self

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for doc in self.docs:
            yield doc


class TestMongoEntityStore:
    """Test the MongoDB entity store against mocked collections."""

    @pytest.fixture
    def collection(self):
        return MagicMock()

    @pytest.fixture
    def store(self, collection, entity_types):
        db = MagicMock()
        db.get_collection.return_value = collection
        return MongoEntityStore(db, entity_types)

    @pytest.mark.asyncio
    async def test_insert_new_entity(self, store, collection):
        object_id = ObjectId()
        collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=object_id))
        entity = store.create("user", values={"name": "a"})

        await store.save(entity)

        assert entity.id == str(object_id)
        collection.insert_one.assert_called_once_with(
            {"bundle": None, "fields": {"name": [{"value": "a"}]}}
        )
        store.db.get_collection.assert_called_with("entities_user")

    @pytest.mark.asyncio
    async def test_update_existing_entity(self, store, collection):
        object_id = ObjectId()
        collection.update_one = AsyncMock()
        entity = store.create("user", values={"name": "a"})
        entity.id = str(object_id)

        await store.save(entity)

        collection.update_one.assert_called_once_with(
            {"_id": object_id},
            {"$set": {"bundle": None, "fields": {"name": [{"value": "a"}]}}},
            upsert=True,
        )

    @pytest.mark.asyncio
    async def test_load(self, store, collection):
        object_id = ObjectId()
        collection.find_one = AsyncMock(return_value={
            "_id": object_id,
            "bundle": None,
            "fields": {"name": [{"value": "a"}]},
        })

        entity = await store.load("user", str(object_id))

        assert entity.id == str(object_id)
        assert entity.get("name").value == "a"

    @pytest.mark.asyncio
    async def test_load_invalid_id(self, store, collection):
        collection.find_one = AsyncMock()

        assert await store.load("user", "not-an-object-id") is None
        collection.find_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_query_ids_by_field(self, store, collection):
        ids = [ObjectId(), ObjectId()]
        cursor = AsyncCursor([{"_id": object_id} for object_id in ids])
        collection.find = MagicMock(return_value=cursor)

        result = await store.query_ids_by_field("node", "body", "text", bundle="article")

        assert result == [str(object_id) for object_id in ids]
        collection.find.assert_called_once_with(
            {"fields.body.text": "text", "bundle": "article"},
            {"_id": 1},
        )
        assert cursor.sort_args == ("_id", 1)
