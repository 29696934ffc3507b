"""Tests for exporting local entity fields."""

import pytest

from entity_sync.core.exceptions import FieldExportException


@pytest.fixture
def local_user(container):
    return container.entity_store.create(
        "user",
        values={"name": "alice", "roles": ["admin"], "mail": None},
    )


class TestExportFields:
    """Test building the remote fields of a local entity."""

    @pytest.mark.asyncio
    async def test_cardinality_shapes_values(self, container, user_sync, local_user):
        fields = await container.export_field_manager.export_fields(local_user, None, user_sync)

        # Empty fields are omitted, multiple cardinality fields stay lists.
        assert fields == {"username": "alice", "roles": ["admin"]}

    @pytest.mark.asyncio
    async def test_value_function_callback(self, container, sync_definition, local_user):
        sync_definition["field_mapping"][0]["export"] = {"callback": "uppercase"}
        sync = container.config_manager.add_sync(sync_definition)

        fields = await container.export_field_manager.export_fields(local_user, None, sync)

        assert fields["username"] == "ALICE"

    @pytest.mark.asyncio
    async def test_value_function_callback_omits_empty_field(self, container, sync_definition):
        sync_definition["field_mapping"][0]["export"] = {"callback": "trim"}
        sync = container.config_manager.add_sync(sync_definition)
        entity = container.entity_store.create("user", values={"roles": ["a", "b"]})

        fields = await container.export_field_manager.export_fields(entity, "r-1", sync)

        assert fields == {"roles": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_multiple_values_keep_order(self, container, user_sync):
        entity = container.entity_store.create("user", values={"roles": ["editor", "admin"]})

        fields = await container.export_field_manager.export_fields(entity, None, user_sync)

        assert fields["roles"] == ["editor", "admin"]

    @pytest.mark.asyncio
    async def test_null_item_exported_as_null(self, container, user_sync):
        entity = container.entity_store.create("user", values={"name": {"value": None}})

        fields = await container.export_field_manager.export_fields(entity, None, user_sync)

        assert "username" in fields
        assert fields["username"] is None

    @pytest.mark.asyncio
    async def test_callable_callback_value_used_as_is(self, container, sync_definition, local_user):
        async def export_roles(local_entity, remote_entity_id, field_mapping):
            return ",".join(local_entity.get("roles").main_values())

        sync_definition["field_mapping"][2]["export"] = {"callback": export_roles}
        sync = container.config_manager.add_sync(sync_definition)

        fields = await container.export_field_manager.export_fields(local_user, "9", sync)

        assert fields["roles"] == "admin"

    @pytest.mark.asyncio
    async def test_disabled_field_skipped(self, container, sync_definition, local_user):
        sync_definition["field_mapping"][2]["export"] = {"status": False}
        sync = container.config_manager.add_sync(sync_definition)

        fields = await container.export_field_manager.export_fields(local_user, None, sync)

        assert "roles" not in fields

    @pytest.mark.asyncio
    async def test_unknown_local_field_for_new_remote_entity(self, container, sync_definition, local_user):
        sync_definition["field_mapping"].insert(0, {"machine_name": "missing", "remote_name": "other"})
        sync = container.config_manager.add_sync(sync_definition)

        with pytest.raises(FieldExportException) as exc_info:
            await container.export_field_manager.export_fields(local_user, None, sync)

        error = exc_info.value
        assert str(error).startswith(
            '"FieldNotFoundError" exception was thrown while exporting the "missing" '
            'field of a new local entity into the "other" field of a new remote entity.'
        )
        assert error.remote_field == "other"
        assert error.remote_entity_text == "a new remote entity"

    @pytest.mark.asyncio
    async def test_failure_names_existing_entities(self, container, sync_definition, local_user):
        def broken(local_entity, remote_entity_id, field_mapping):
            raise RuntimeError("boom")

        sync_definition["field_mapping"][0]["export"] = {"callback": broken}
        sync = container.config_manager.add_sync(sync_definition)
        local_user.id = 12

        with pytest.raises(FieldExportException) as exc_info:
            await container.export_field_manager.export_fields(local_user, "r-5", sync)

        error = exc_info.value
        assert str(error).startswith(
            '"RuntimeError" exception was thrown while exporting the "name" field of '
            'the local entity with ID "12" into the "username" field of the remote '
            'entity with ID "r-5".'
        )
        assert error.original_message == "boom"
        assert error.field_mapping["export"]["callback"] == "broken"


class TestChangedNames:
    """Test detection of changed and exportable fields."""

    def test_changed_names(self, container):
        original = container.entity_store.create("user", values={"name": "alice", "roles": ["a"]})
        changed = container.entity_store.create("user", values={"name": "alice", "roles": ["a", "b"]})

        names = container.export_field_manager.get_changed_names(changed, original)

        assert names == ["roles"]

    def test_changed_names_filter(self, container):
        original = container.entity_store.create("user", values={"name": "alice", "mail": "a@x"})
        changed = container.entity_store.create("user", values={"name": "alicia", "mail": "b@x"})
        manager = container.export_field_manager

        assert manager.get_changed_names(changed, original, ["mail"]) == ["mail"]
        assert manager.get_changed_names(changed, original, []) == []

    def test_exportable_changed_names(self, container, user_sync):
        original = container.entity_store.create("user", values={"name": "alice", "status": "on"})
        changed = container.entity_store.create("user", values={"name": "alicia", "status": "off"})
        manager = container.export_field_manager

        # "status" changed but is not mapped.
        assert manager.get_exportable_changed_names(changed, original, user_sync.field_mapping) == ["name"]
        assert manager.get_exportable_changed_names(
            changed, original, user_sync.field_mapping, names_filter=[]
        ) == []
        assert manager.get_exportable_changed_names(
            changed, original, user_sync.field_mapping, changed_names=[]
        ) == []

    def test_exportable_names(self, container, sync_definition):
        sync_definition["field_mapping"][1]["export"] = {"status": False}
        sync = container.config_manager.add_sync(sync_definition)

        assert container.export_field_manager.get_exportable_names(sync.field_mapping) == ["name", "roles"]
