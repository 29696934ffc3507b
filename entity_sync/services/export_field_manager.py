"""Export of local entity fields into remote entity fields."""

from typing import Any, Dict, List, Optional
import logging

from entity_sync.core.exceptions import (
    FieldExportException,
    FieldNotFoundError,
    describe_field_mapping,
)
from entity_sync.events import EventDispatcher, ExportEvents, ExportFieldMappingEvent
from entity_sync.models import EMPTY, FieldMapping, LocalEntity, SyncDefinition
from entity_sync.services.transformation_service import Direction, TransformationService

logger = logging.getLogger(__name__)


class ExportFieldManager:
    """Builds the remote fields to send for a local entity."""

    def __init__(self, dispatcher: EventDispatcher, transformations: TransformationService):
        self.dispatcher = dispatcher
        self.transformations = transformations

    async def export_fields(
        self,
        local_entity: LocalEntity,
        remote_entity_id: Any,
        sync: SyncDefinition,
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Get the remote field values for the local entity.

        `remote_entity_id` is None when a new remote entity will be created.

        Raises:
            FieldExportException: On the first field that fails to export.
        """
        field_mapping = await self.field_mapping(local_entity, remote_entity_id, sync)
        if not field_mapping:
            return {}

        fields: Dict[str, Any] = {}
        for field_info in field_mapping:
            if not field_info.export.status:
                continue
            try:
                value = await self._export_field(local_entity, remote_entity_id, field_info)
            except Exception as e:
                self._raise_field_exception(local_entity, remote_entity_id, field_info, e)
            if value is not EMPTY:
                fields[field_info.remote_name] = value

        return fields

    async def field_mapping(
        self,
        local_entity: LocalEntity,
        remote_entity_id: Any,
        sync: SyncDefinition,
    ) -> List[FieldMapping]:
        """Build the field mapping through the field mapping subscribers."""
        event = ExportFieldMappingEvent(
            local_entity=local_entity,
            remote_entity_id=remote_entity_id,
            sync=sync,
        )
        await self.dispatcher.dispatch(ExportEvents.FIELD_MAPPING, event)
        return event.field_mapping

    async def _export_field(
        self,
        local_entity: LocalEntity,
        remote_entity_id: Any,
        field_info: FieldMapping,
    ) -> Any:
        if field_info.export.callback is not None:
            return await self.transformations.call(
                field_info.export.callback,
                Direction.EXPORT,
                local_entity,
                remote_entity_id,
                field_info,
            )

        if not local_entity.has_field(field_info.machine_name):
            raise FieldNotFoundError(
                f'The non-existing local entity field "{field_info.machine_name}" '
                f"was requested to be mapped to a remote field"
            )

        items = local_entity.get(field_info.machine_name)
        if items.is_empty():
            return EMPTY

        # Single cardinality fields export their value, multiple cardinality
        # fields a list even when holding one item.
        values = items.main_values()
        if items.definition.is_multiple:
            return values
        return values[0]

    def _raise_field_exception(
        self,
        local_entity: LocalEntity,
        remote_entity_id: Any,
        field_info: FieldMapping,
        error: Exception,
    ) -> None:
        local_entity_text = local_entity.describe()
        remote_entity_text = "a new remote entity"
        if remote_entity_id is not None:
            remote_entity_text = f'the remote entity with ID "{remote_entity_id}"'

        described = field_info.describe()
        raise FieldExportException(
            f'"{type(error).__name__}" exception was thrown while exporting the '
            f'"{field_info.machine_name}" field of {local_entity_text} into the '
            f'"{field_info.remote_name}" field of {remote_entity_text}. '
            f"The error message was: {error}. "
            f"The field mapping was: {describe_field_mapping(described)}",
            local_entity_text=local_entity_text,
            remote_entity_text=remote_entity_text,
            field_mapping=described,
            remote_field=field_info.remote_name,
            original_message=str(error),
        ) from error

    def get_changed_names(
        self,
        changed_entity: LocalEntity,
        original_entity: LocalEntity,
        names_filter: Optional[List[str]] = None,
    ) -> List[str]:
        """Get the names of the fields whose values differ between the entities.

        An empty `names_filter` yields no names; None does not filter.
        """
        names = changed_entity.field_names()
        if names_filter is not None:
            names = [name for name in names if name in names_filter]

        changed = []
        for name in names:
            if not original_entity.has_field(name):
                changed.append(name)
            elif changed_entity.get(name) != original_entity.get(name):
                changed.append(name)
        return changed

    def get_exportable_names(self, field_mapping: List[FieldMapping]) -> List[str]:
        """Get the names of the local fields that the field mapping exports."""
        return [
            field_info.machine_name
            for field_info in field_mapping
            if field_info.export.status
        ]

    def get_exportable_changed_names(
        self,
        changed_entity: LocalEntity,
        original_entity: LocalEntity,
        field_mapping: List[FieldMapping],
        names_filter: Optional[List[str]] = None,
        changed_names: Optional[List[str]] = None,
    ) -> List[str]:
        """Get the exportable fields whose values differ between the entities.

        `changed_names` may be given when the changed fields are already known.
        """
        if names_filter is not None and not names_filter:
            return []
        if changed_names is not None and not changed_names:
            return []

        if changed_names is None:
            changed_names = self.get_changed_names(changed_entity, original_entity, names_filter)

        names = []
        for name in self.get_exportable_names(field_mapping):
            if name not in changed_names:
                continue
            if names_filter is not None and name not in names_filter:
                continue
            if name not in names:
                names.append(name)
        return names
