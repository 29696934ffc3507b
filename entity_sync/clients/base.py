"""Base remote client class."""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, List, Tuple, Union
import logging

from entity_sync.clients.iterator import RemoteListIterator
from entity_sync.core.config import get_settings
from entity_sync.core.exceptions import EntitySyncError
from entity_sync.models import SyncDefinition


logger = logging.getLogger(__name__)


class ClientError(EntitySyncError):
    """Base remote client error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BaseClient(ABC):
    """Base class for clients of remote resources.

    Clients are constructed by the client factory with the synchronization they
    serve and the options declared in its client binding.
    """

    def __init__(self, sync: SyncDefinition, **options: Any):
        self.sync = sync
        self.options = options

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    # Abstract methods that must be implemented

    @abstractmethod
    async def list(
        self,
        filters: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[Union[RemoteListIterator, List[Any]]]:
        """List remote entities matching the given filters."""
        pass

    @abstractmethod
    async def get(self, remote_id: Any) -> Any:
        """Get the remote entity with the given ID."""
        pass

    @abstractmethod
    async def create(self, fields: Dict[str, Any]) -> Any:
        """Create a remote entity."""
        pass

    @abstractmethod
    async def update(self, remote_id: Any, fields: Dict[str, Any]) -> Any:
        """Update the remote entity with the given ID."""
        pass

    # Paging (override for clients of paginated resources)

    def supports_paging(self) -> bool:
        return False

    async def list_page(
        self,
        filters: Dict[str, Any],
        options: Dict[str, Any],
        page: int,
        limit: int,
    ) -> Tuple[List[Any], Optional[int]]:
        """Fetch one page of remote entities and the total page count."""
        raise NotImplementedError("This client does not support paging")

    def iterator(
        self,
        filters: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> RemoteListIterator:
        """Build an iterator that fetches pages through `list_page`."""
        filters = dict(filters or {})
        options = dict(options or {})
        limit = options.pop("limit", None) or get_settings().default_page_limit

        async def fetch(page: int, page_limit: int):
            return await self.list_page(filters, options, page, page_limit)

        return RemoteListIterator(fetch, limit=limit)

    async def aclose(self) -> None:
        """Release resources held by the client."""
        pass
