"""Synchronization definition source."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import json
import logging

import yaml
from pydantic import ValidationError

from entity_sync.core.exceptions import ConfigurationError, UnknownSyncError
from entity_sync.models import EntityTypeDefinition, Operation, SyncDefinition
from entity_sync.services.transformation_service import (
    TransformationService,
    transformation_service,
)

logger = logging.getLogger(__name__)

CONFIG_EXTENSIONS = (".yml", ".yaml", ".json")


class ConfigManager:
    """Holds the synchronization definitions known to the service.

    Definitions are validated when added, including the callbacks referenced
    by their field mapping, so that only usable definitions are served.
    """

    def __init__(self, transformations: Optional[TransformationService] = None):
        self.transformations = transformations or transformation_service
        self._syncs: Dict[str, SyncDefinition] = {}

    def add_sync(self, definition: Union[SyncDefinition, Dict[str, Any]]) -> SyncDefinition:
        """Validate and add a synchronization definition."""
        if not isinstance(definition, SyncDefinition):
            try:
                definition = SyncDefinition.model_validate(definition)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid synchronization definition: {e}") from e

        self.validate_callbacks(definition)
        if definition.id in self._syncs:
            logger.warning(f"Replacing synchronization {definition.id}")
        self._syncs[definition.id] = definition
        logger.info(f"Added synchronization {definition.id}")
        return definition

    def validate_callbacks(self, definition: SyncDefinition) -> None:
        """Ensure that callbacks referenced by name are registered."""
        for field_mapping in definition.field_mapping:
            for direction in (field_mapping.import_, field_mapping.export):
                callback = direction.callback
                if isinstance(callback, str) and not self.transformations.has(callback):
                    raise ConfigurationError(
                        f'The field mapping of "{field_mapping.machine_name}" in '
                        f'synchronization "{definition.id}" references the unknown '
                        f'callback "{callback}"'
                    )

    def load_file(self, path: Union[str, Path]) -> List[SyncDefinition]:
        """Load the definitions of a YAML or JSON file.

        A file may hold a single definition or a list of definitions.
        """
        path = Path(path)
        with path.open() as f:
            if path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)

        if data is None:
            return []
        items = data if isinstance(data, list) else [data]
        return [self.add_sync(item) for item in items]

    def load_directory(self, path: Union[str, Path]) -> int:
        """Load all definition files of a directory, in name order."""
        directory = Path(path)
        if not directory.is_dir():
            raise ConfigurationError(f'Synchronization config directory "{path}" does not exist')

        count = 0
        for file_path in sorted(directory.iterdir()):
            if file_path.suffix in CONFIG_EXTENSIONS:
                count += len(self.load_file(file_path))
        logger.info(f"Loaded {count} synchronizations from {directory}")
        return count

    def has_sync(self, sync_id: str) -> bool:
        return sync_id in self._syncs

    def get_sync(self, sync_id: str) -> SyncDefinition:
        """Get a synchronization by ID.

        Raises:
            UnknownSyncError: If no synchronization has the given ID.
        """
        sync = self._syncs.get(sync_id)
        if sync is None:
            raise UnknownSyncError(sync_id)
        return sync

    def get_syncs(self, filters: Optional[Dict[str, Any]] = None) -> List[SyncDefinition]:
        """Get the synchronizations matching the given filters.

        Supported filters:
            local_entity: `type_id` and `bundle` of the local entity. A
                synchronization without a bundle matches any bundle.
            operation: `id` of an operation and its expected `status`,
                enabled by default.
        """
        filters = filters or {}
        local_filters = filters.get("local_entity") or {}
        operation_filters = filters.get("operation") or {}

        syncs = []
        for sync in self._syncs.values():
            type_id = local_filters.get("type_id")
            if type_id is not None and sync.local_entity.type_id != type_id:
                continue
            bundle = local_filters.get("bundle")
            if bundle is not None and sync.local_entity.bundle not in (None, bundle):
                continue
            operation = operation_filters.get("id")
            if operation is not None:
                status = operation_filters.get("status", True)
                if sync.operation(Operation(operation)).status != status:
                    continue
            syncs.append(sync)
        return syncs

    def all(self) -> List[SyncDefinition]:
        return list(self._syncs.values())


def load_entity_types(path: Union[str, Path]) -> List[EntityTypeDefinition]:
    """Load local entity type definitions from a YAML or JSON file."""
    path = Path(path)
    with path.open() as f:
        data = json.load(f) if path.suffix == ".json" else yaml.safe_load(f)

    try:
        return [EntityTypeDefinition.model_validate(item) for item in data or []]
    except ValidationError as e:
        raise ConfigurationError(f"Invalid entity type definition in {path}: {e}") from e
