"""Pytest configuration and fixtures for entity sync tests."""

import asyncio
import copy
from typing import Any, Dict, List, Optional

import pytest

from entity_sync.clients import BaseClient, ClientRegistry
from entity_sync.core.config import Settings
from entity_sync.core.container import SyncContainer
from entity_sync.models import CARDINALITY_UNLIMITED, EntityTypeDefinition, FieldDefinition
from entity_sync.services import TransformationService
from entity_sync.storage import MemoryEntityStore, MemoryKeyValueStore

NOW = 1700000000


@ClientRegistry.register("test_client")
class FakeClient(BaseClient):
    """Remote client serving entities from memory and recording calls."""

    def __init__(self, sync, **options: Any):
        super().__init__(sync, **options)
        self.entities: Dict[Any, Dict[str, Any]] = {}
        self.pages: Optional[Any] = None
        self.list_calls: List[tuple] = []
        self.created: List[Dict[str, Any]] = []
        self.updated: List[tuple] = []
        self.list_started = asyncio.Event()
        self.list_gate: Optional[asyncio.Event] = None
        self.list_error: Optional[Exception] = None
        self.changed_time: Optional[int] = None
        self.next_id = 100
        self.closed = False

    def add(self, entity: Dict[str, Any]) -> None:
        self.entities[entity[self.sync.remote_resource.id_field]] = entity

    async def list(self, filters=None, options=None):
        self.list_calls.append((dict(filters or {}), dict(options or {})))
        self.list_started.set()
        if self.list_gate is not None:
            await self.list_gate.wait()
        if self.list_error is not None:
            raise self.list_error
        if self.pages is not None:
            return self.pages
        return list(self.entities.values())

    async def get(self, remote_id):
        return self.entities.get(remote_id)

    def _response(self, remote_id, fields):
        response = {self.sync.remote_resource.id_field: remote_id, **fields}
        if self.changed_time is not None:
            response["changed"] = self.changed_time
        return response

    async def create(self, fields):
        self.next_id += 1
        self.created.append(fields)
        return self._response(self.next_id, fields)

    async def update(self, remote_id, fields):
        self.updated.append((remote_id, fields))
        return self._response(remote_id, fields)

    async def aclose(self):
        self.closed = True


class FixedClock:
    """Clock returning a settable request time."""

    def __init__(self, now: int = NOW):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def entity_types():
    """Local entity types: users and bundleable nodes."""
    return [
        EntityTypeDefinition(
            id="user",
            fields={
                "name": FieldDefinition(name="name"),
                "mail": FieldDefinition(name="mail"),
                "roles": FieldDefinition(name="roles", cardinality=CARDINALITY_UNLIMITED),
                "status": FieldDefinition(name="status"),
                "sync_remote_id": FieldDefinition(name="sync_remote_id"),
                "sync_remote_changed": FieldDefinition(name="sync_remote_changed"),
            },
        ),
        EntityTypeDefinition(
            id="node",
            bundleable=True,
            fields={
                "title": FieldDefinition(name="title"),
                "sync_remote_id": FieldDefinition(name="sync_remote_id"),
                "sync_remote_changed": FieldDefinition(name="sync_remote_changed"),
            },
            bundle_fields={
                "article": {"body": FieldDefinition(name="body", main_property="text")},
            },
        ),
    ]


USER_SYNC = {
    "id": "user",
    "label": "Users",
    "local_entity": {"type_id": "user"},
    "remote_resource": {
        "name": "users",
        "client": {"type": "service", "service": "test_client"},
        "id_field": "userId",
        "changed_field": {"name": "changed", "format": "timestamp"},
    },
    "operations": {
        "import_list": {"status": True},
        "import_entity": {"status": True},
        "export_entity": {"status": True},
    },
    "field_mapping": [
        {"machine_name": "name", "remote_name": "username"},
        {
            "machine_name": "mail",
            "remote_name": "email",
            "import": {"callback": "email_normalize"},
        },
        {"machine_name": "roles", "remote_name": "roles"},
    ],
}


@pytest.fixture
def sync_definition():
    """A fresh copy of the user synchronization definition."""
    return copy.deepcopy(USER_SYNC)


@pytest.fixture
def managed_definition(sync_definition):
    """The user synchronization with managed, locking operations."""
    for operation in ("import_list", "import_entity", "export_entity"):
        sync_definition["operations"][operation]["state"] = {
            "manager": "entity_sync",
            "lock": True,
        }
    return sync_definition


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def settings():
    return Settings(state_backend="memory", entity_backend="memory")


@pytest.fixture
def container(entity_types, clock, settings):
    """Container with in-memory stores and no synchronizations."""
    return SyncContainer(
        state_store=MemoryKeyValueStore(),
        entity_store=MemoryEntityStore(entity_types),
        transformations=TransformationService(),
        clock=clock,
        settings=settings,
    )


@pytest.fixture
def user_sync(container, sync_definition):
    return container.config_manager.add_sync(sync_definition)


@pytest.fixture
def remote_users():
    return [
        {
            "userId": 1,
            "username": "alice",
            "email": " Alice@Example.com ",
            "roles": ["admin", "editor"],
            "changed": 1690000000,
        },
        {
            "userId": 2,
            "username": "bob",
            "email": "bob@example.com",
            "roles": [],
            "changed": "1690000100",
        },
    ]


def get_client(container: SyncContainer, sync_id: str = "user") -> FakeClient:
    return container.client_factory.get(sync_id)


@pytest.fixture
def client_of():
    """Get the fake client the container resolves for a synchronization."""
    return get_client
