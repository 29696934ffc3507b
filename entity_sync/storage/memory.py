"""In-memory local entity store."""

from typing import Any, Dict, Iterable, List, Optional
import logging

from entity_sync.models import EntityTypeDefinition, LocalEntity
from entity_sync.storage.entity_store import EntityStore

logger = logging.getLogger(__name__)


class MemoryEntityStore(EntityStore):
    """Entity store keeping records in process memory, with integer IDs."""

    def __init__(self, entity_types: Optional[Iterable[EntityTypeDefinition]] = None):
        super().__init__(entity_types)
        self._records: Dict[str, Dict[int, Dict[str, Any]]] = {}
        self._next_ids: Dict[str, int] = {}

    async def load(self, type_id: str, entity_id: Any) -> Optional[LocalEntity]:
        record = self._records.get(type_id, {}).get(entity_id)
        if record is None:
            return None
        return LocalEntity(
            self.entity_type(type_id),
            bundle=record["bundle"],
            entity_id=entity_id,
            values=record["fields"],
        )

    async def query_ids_by_field(
        self,
        type_id: str,
        field_name: str,
        value: Any,
        bundle: Optional[str] = None,
    ) -> List[Any]:
        definition = self.entity_type(type_id).fields_for(bundle).get(field_name)
        if definition is None:
            return []
        main_property = definition.main_property

        ids = []
        for entity_id, record in self._records.get(type_id, {}).items():
            if bundle is not None and record["bundle"] != bundle:
                continue
            items = record["fields"].get(field_name, [])
            if any(item.get(main_property) == value for item in items):
                ids.append(entity_id)
        return sorted(ids)

    async def save(self, entity: LocalEntity) -> LocalEntity:
        type_id = entity.entity_type_id
        records = self._records.setdefault(type_id, {})
        if entity.is_new():
            entity.id = self._next_ids.get(type_id, 1)
            self._next_ids[type_id] = entity.id + 1
        records[entity.id] = {"bundle": entity.bundle, "fields": entity.to_dict()}
        logger.debug(f"Saved {type_id} entity {entity.id}")
        return entity
