"""Resolution of the remote client bound to a synchronization."""

from typing import Dict, Optional, Tuple, Type
import json
import logging

from entity_sync.clients.base import BaseClient
from entity_sync.clients.registry import ClientRegistry
from entity_sync.core.exceptions import ConfigurationError
from entity_sync.models import ClientBinding, SyncDefinition

logger = logging.getLogger(__name__)

CLIENT_TYPE_SERVICE = "service"


class ClientFactory:
    """Builds the remote clients declared by synchronization definitions.

    Clients are cached per synchronization and binding so that connections are
    reused across operations; `aclose_all` releases them.
    """

    def __init__(self, config_manager, registry: Type[ClientRegistry] = ClientRegistry):
        self.config_manager = config_manager
        self.registry = registry
        self._clients: Dict[Tuple[str, str], BaseClient] = {}

    def get(self, sync_id: str) -> BaseClient:
        """Get the client for the synchronization with the given ID.

        Raises:
            ConfigurationError: If the synchronization is unknown or its client
                binding cannot be resolved.
        """
        sync = self.config_manager.get_sync(sync_id)
        return self.get_by_client_config(sync.remote_resource.client, sync)

    def get_by_client_config(
        self,
        binding: Optional[ClientBinding],
        sync: SyncDefinition,
    ) -> BaseClient:
        """Get the client described by the given binding."""
        if binding is None or not binding.type:
            raise ConfigurationError(
                f'No remote client is defined for the synchronization "{sync.id}"'
            )
        if binding.type != CLIENT_TYPE_SERVICE:
            raise ConfigurationError(
                f'Unsupported client type "{binding.type}" for the synchronization "{sync.id}"'
            )
        if not binding.service:
            raise ConfigurationError(
                f'No client service is defined for the synchronization "{sync.id}"'
            )

        # Options may hold objects such as transports, keyed by their repr.
        cache_key = (sync.id, json.dumps(binding.model_dump(), sort_keys=True, default=repr))
        if cache_key in self._clients:
            return self._clients[cache_key]

        constructor = self.registry.get(binding.service)
        if constructor is None:
            raise ConfigurationError(
                f'No remote client is registered as "{binding.service}"'
            )

        client = constructor(sync, **binding.options)
        if not isinstance(client, BaseClient):
            raise ConfigurationError(
                f'The client service "{binding.service}" does not implement the remote client interface'
            )

        logger.debug(f"Created client {binding.service} for synchronization {sync.id}")
        self._clients[cache_key] = client
        return client

    async def aclose_all(self) -> None:
        """Close all clients created so far."""
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.aclose()
