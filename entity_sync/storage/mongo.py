"""MongoDB local entity store."""

from typing import Any, Dict, Iterable, List, Optional
from bson import ObjectId
from bson.errors import InvalidId
import logging

from entity_sync.core.database import Database, entity_collection_name
from entity_sync.models import EntityTypeDefinition, LocalEntity
from entity_sync.storage.entity_store import EntityStore

logger = logging.getLogger(__name__)


class MongoEntityStore(EntityStore):
    """Entity store keeping one collection per entity type.

    Documents hold the bundle and the field items keyed by field name under
    `fields`.
    """

    def __init__(self, db: Database, entity_types: Optional[Iterable[EntityTypeDefinition]] = None):
        super().__init__(entity_types)
        self.db = db

    def _collection(self, type_id: str):
        return self.db.get_collection(entity_collection_name(type_id))

    async def load(self, type_id: str, entity_id: Any) -> Optional[LocalEntity]:
        try:
            object_id = ObjectId(str(entity_id))
        except InvalidId:
            logger.warning(f"Invalid {type_id} entity ID {entity_id}")
            return None

        doc = await self._collection(type_id).find_one({"_id": object_id})
        if not doc:
            return None
        return LocalEntity(
            self.entity_type(type_id),
            bundle=doc.get("bundle"),
            entity_id=str(doc["_id"]),
            values=doc.get("fields", {}),
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

        filters: Dict[str, Any] = {
            f"fields.{field_name}.{definition.main_property}": value,
        }
        if bundle is not None:
            filters["bundle"] = bundle

        cursor = self._collection(type_id).find(filters, {"_id": 1}).sort("_id", 1)
        return [str(doc["_id"]) async for doc in cursor]

    async def save(self, entity: LocalEntity) -> LocalEntity:
        collection = self._collection(entity.entity_type_id)
        doc = {"bundle": entity.bundle, "fields": entity.to_dict()}

        if entity.is_new():
            result = await collection.insert_one(doc)
            entity.id = str(result.inserted_id)
            logger.info(f"Created {entity.entity_type_id} entity {entity.id}")
        else:
            await collection.update_one(
                {"_id": ObjectId(str(entity.id))},
                {"$set": doc},
                upsert=True,
            )
            logger.debug(f"Updated {entity.entity_type_id} entity {entity.id}")
        return entity
