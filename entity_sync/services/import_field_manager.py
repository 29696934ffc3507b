"""Import of remote entity fields into local entities."""

from typing import Any, Dict, List, Optional, Union
import logging

from entity_sync.core.exceptions import (
    FieldImportException,
    FieldNotFoundError,
    describe_field_mapping,
)
from entity_sync.events import EventDispatcher, ImportEvents, ImportFieldMappingEvent
from entity_sync.models import (
    ChangedFieldFormat,
    FieldMapping,
    LocalEntity,
    SyncDefinition,
    remote_field_exists,
    remote_field_value,
)
from entity_sync.services.transformation_service import Direction, TransformationService
from entity_sync.utils.datetime import is_timestamp, parse_datetime_string

logger = logging.getLogger(__name__)

SYNC_FIELD_REMOTE_ID = "remote_id"
SYNC_FIELD_REMOTE_CHANGED = "remote_changed"


class ImportFieldManager:
    """Copies the mapped fields of a remote entity onto a local entity.

    The local entity is modified in place and is not saved.
    """

    def __init__(self, dispatcher: EventDispatcher, transformations: TransformationService):
        self.dispatcher = dispatcher
        self.transformations = transformations

    async def import_fields(
        self,
        remote_entity: Any,
        local_entity: LocalEntity,
        sync: SyncDefinition,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Import the fields of the remote entity into the local entity.

        Raises:
            FieldImportException: On the first field that fails to import.
        """
        field_mapping = await self.field_mapping(remote_entity, local_entity, sync)
        # Nothing to update on the local entity.
        if not field_mapping:
            return

        for field_info in field_mapping:
            if not field_info.import_.status:
                continue
            try:
                await self._import_field(remote_entity, local_entity, field_info)
            except Exception as e:
                self._raise_field_exception(
                    remote_entity, local_entity, field_info, sync, e
                )

        try:
            self.set_remote_id_field(remote_entity, local_entity, sync)
        except Exception as e:
            self._raise_sync_field_exception(
                remote_entity, local_entity, SYNC_FIELD_REMOTE_ID, sync, e
            )

        try:
            self.set_remote_changed_field(remote_entity, local_entity, sync)
        except Exception as e:
            self._raise_sync_field_exception(
                remote_entity, local_entity, SYNC_FIELD_REMOTE_CHANGED, sync, e
            )

    async def field_mapping(
        self,
        remote_entity: Any,
        local_entity: LocalEntity,
        sync: SyncDefinition,
    ) -> List[FieldMapping]:
        """Build the field mapping through the field mapping subscribers."""
        event = ImportFieldMappingEvent(
            remote_entity=remote_entity,
            local_entity=local_entity,
            sync=sync,
        )
        await self.dispatcher.dispatch(ImportEvents.FIELD_MAPPING, event)
        return event.field_mapping

    async def _import_field(
        self,
        remote_entity: Any,
        local_entity: LocalEntity,
        field_info: FieldMapping,
    ) -> None:
        if field_info.import_.callback is not None:
            await self.transformations.call(
                field_info.import_.callback,
                Direction.IMPORT,
                remote_entity,
                local_entity,
                field_info,
            )
        elif not local_entity.has_field(field_info.machine_name):
            raise FieldNotFoundError(
                f'The non-existing local entity field "{field_info.machine_name}" '
                f"was requested to be mapped to a remote field"
            )
        # A null remote value clears the local field.
        elif remote_field_exists(remote_entity, field_info.remote_name):
            local_entity.set(
                field_info.machine_name,
                remote_field_value(remote_entity, field_info.remote_name),
            )

    def set_remote_id_field(
        self,
        remote_entity: Any,
        local_entity: LocalEntity,
        sync: SyncDefinition,
        force: bool = True,
    ) -> None:
        """Copy the remote entity ID onto the local remote ID field.

        Without `force` an already set local remote ID is kept.
        """
        remote_id_field = sync.remote_resource.id_field
        remote_id = remote_field_value(remote_entity, remote_id_field)
        if remote_id is None:
            raise ValueError(
                f'The non-existing remote entity field "{remote_id_field}" was requested '
                f"to be mapped to the remote entity ID field on the local entity."
            )

        local_id_field = sync.local_entity.remote_id_field
        if not force and not local_entity.get(local_id_field).is_empty():
            return
        local_entity.set(local_id_field, remote_id)

    def set_remote_changed_field(
        self,
        remote_entity: Any,
        local_entity: LocalEntity,
        sync: SyncDefinition,
    ) -> None:
        """Copy the remote changed time onto the local remote changed field.

        Does nothing when the synchronization defines no remote changed field.
        """
        changed_field = sync.remote_resource.changed_field
        if changed_field is None:
            return

        value = remote_field_value(remote_entity, changed_field.name)
        if value is None:
            raise ValueError(
                f'The non-existing remote entity field "{changed_field.name}" was requested '
                f"to be mapped to the remote entity changed field on the local entity."
            )

        if changed_field.format == ChangedFieldFormat.TIMESTAMP:
            if not is_timestamp(value):
                raise ValueError(
                    f'The remote entity field "{changed_field.name}" that was requested to be '
                    f"mapped to the remote entity changed field on the local entity was "
                    f'expected to be in Unix timestamp format, "{value}" given.'
                )
            timestamp = int(value)
        else:
            try:
                timestamp = parse_datetime_string(value)
            except ValueError as e:
                raise ValueError(
                    f'The remote entity field "{changed_field.name}" that was requested to be '
                    f"mapped to the remote entity changed field on the local entity was "
                    f'expected to be in a textual date/time format, "{value}" given.'
                ) from e

        local_entity.set(sync.local_entity.remote_changed_field, timestamp)

    def _raise_field_exception(
        self,
        remote_entity: Any,
        local_entity: LocalEntity,
        field_info: Union[FieldMapping, Dict[str, Any]],
        sync: SyncDefinition,
        error: Exception,
        sync_field: Optional[str] = None,
    ) -> None:
        if isinstance(field_info, FieldMapping):
            field_info = field_info.describe()
        remote_id = remote_field_value(remote_entity, sync.remote_resource.id_field)
        raise FieldImportException(
            f'"{type(error).__name__}" exception was thrown while importing the '
            f'"{field_info["remote_name"]}" field of the remote entity with ID '
            f'"{remote_id if remote_id is not None else ""}" into the '
            f'"{field_info["machine_name"]}" field of {local_entity.describe()}. '
            f"The error message was: {error}. "
            f"The field mapping was: {describe_field_mapping(field_info)}",
            remote_entity_id=remote_id,
            local_entity_text=local_entity.describe(),
            field_mapping=field_info,
            remote_field=field_info["remote_name"],
            original_message=str(error),
            sync_field=sync_field,
        ) from error

    def _raise_sync_field_exception(
        self,
        remote_entity: Any,
        local_entity: LocalEntity,
        sync_field: str,
        sync: SyncDefinition,
        error: Exception,
    ) -> None:
        if sync_field == SYNC_FIELD_REMOTE_ID:
            field_info = {
                "machine_name": sync.local_entity.remote_id_field,
                "remote_name": sync.remote_resource.id_field,
            }
        elif sync_field == SYNC_FIELD_REMOTE_CHANGED:
            changed_field = sync.remote_resource.changed_field
            field_info = {
                "machine_name": sync.local_entity.remote_changed_field,
                "remote_name": changed_field.name if changed_field else None,
            }
        else:
            raise ValueError(
                f'The "remote_id" and "remote_changed" sync fields are supported, '
                f'"{sync_field}" given'
            )

        self._raise_field_exception(
            remote_entity, local_entity, field_info, sync, error, sync_field=sync_field
        )
