"""Exceptions raised by the synchronization core."""

import json
from typing import Any, Dict, Optional


class EntitySyncError(Exception):
    """Base entity sync error."""
    pass


class ConfigurationError(EntitySyncError):
    """A synchronization is misconfigured or used in an unsupported way."""
    pass


class UnknownSyncError(ConfigurationError):
    """No synchronization is known by the requested ID."""

    def __init__(self, sync_id: str):
        super().__init__(f'Unknown synchronization with ID "{sync_id}"')
        self.sync_id = sync_id


class UnsupportedActionError(ConfigurationError):
    """An entity mapping carries an action the operation cannot perform."""

    def __init__(self, action: Any):
        super().__init__(f'Unsupported entity mapping action "{action}"')
        self.action = action


class InvalidPageError(EntitySyncError):
    """A page index outside of the known range was requested."""
    pass


class FieldNotFoundError(EntitySyncError):
    """A field that does not exist on the entity schema was requested."""
    pass


class EntityNotFoundError(EntitySyncError):
    """A local entity could not be loaded."""
    pass


class FieldImportException(EntitySyncError):
    """Importing a field of a remote entity into a local entity failed."""

    def __init__(
        self,
        message: str,
        remote_entity_id: Any = None,
        local_entity_text: str = "",
        field_mapping: Optional[Dict[str, Any]] = None,
        remote_field: Optional[str] = None,
        original_message: str = "",
        sync_field: Optional[str] = None,
    ):
        super().__init__(message)
        self.remote_entity_id = remote_entity_id
        self.local_entity_text = local_entity_text
        self.field_mapping = field_mapping or {}
        self.remote_field = remote_field
        self.original_message = original_message
        self.sync_field = sync_field


class FieldExportException(EntitySyncError):
    """Exporting a field of a local entity failed."""

    def __init__(
        self,
        message: str,
        local_entity_text: str = "",
        remote_entity_text: str = "",
        field_mapping: Optional[Dict[str, Any]] = None,
        remote_field: Optional[str] = None,
        original_message: str = "",
    ):
        super().__init__(message)
        self.local_entity_text = local_entity_text
        self.remote_entity_text = remote_entity_text
        self.field_mapping = field_mapping or {}
        self.remote_field = remote_field
        self.original_message = original_message


def describe_field_mapping(field_mapping: Dict[str, Any]) -> str:
    """Render a field mapping for inclusion in an error message."""
    return json.dumps(field_mapping, default=str, sort_keys=True)
