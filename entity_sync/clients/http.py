"""Remote client for JSON resources served over HTTP."""

from typing import Optional, Dict, Any, List, Tuple, Union
import logging
import httpx

from entity_sync.clients.base import BaseClient, ClientError
from entity_sync.clients.iterator import RemoteListIterator
from entity_sync.clients.registry import ClientRegistry
from entity_sync.models import SyncDefinition

logger = logging.getLogger(__name__)


@ClientRegistry.register("http_json")
class HttpJsonClient(BaseClient):
    """Client for a REST-style JSON collection.

    Binding options:
        base_url: Root URL of the API.
        resource_path: Path of the collection; defaults to the remote resource
            name of the synchronization.
        headers: Headers sent with every request.
        timeout: Request timeout in seconds.
        paging: Whether the collection is paginated.
        page_param / limit_param: Query parameters carrying the page index
            and page size.
        results_key: Key of the response holding the list items; the response
            itself is the list when not set.
        total_pages_key: Key of the response holding the total page count.
        item_key: Key of single-entity responses holding the entity.
        filter_params: Query parameter names keyed by filter name.
        update_method: HTTP method used for updates.
        transport: Optional `httpx` transport.
    """

    def __init__(self, sync: SyncDefinition, **options: Any):
        super().__init__(sync, **options)
        if not options.get("base_url"):
            raise ClientError(
                f'The "base_url" option is required by the HTTP client of synchronization "{sync.id}"'
            )
        self.resource_path = options.get("resource_path") or sync.remote_resource.name or ""
        self.paging = options.get("paging", True)
        self.page_param = options.get("page_param", "page")
        self.limit_param = options.get("limit_param", "limit")
        self.results_key = options.get("results_key")
        self.total_pages_key = options.get("total_pages_key", "total_pages")
        self.item_key = options.get("item_key")
        self.filter_params: Dict[str, str] = options.get("filter_params", {})
        self.update_method = options.get("update_method", "PATCH")
        self.http_client = httpx.AsyncClient(
            base_url=options["base_url"],
            headers=options.get("headers"),
            timeout=options.get("timeout", 30.0),
            transport=options.get("transport"),
        )

    def supports_paging(self) -> bool:
        return bool(self.paging)

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make an API request and decode its JSON body."""
        try:
            response = await self.http_client.request(
                method=method,
                url=url,
                params=params,
                json=json,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ClientError(
                f"API request failed: {e}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"API request failed: {e}")
            raise ClientError(f"API request failed: {str(e)}") from e

        if not response.content:
            return None
        return response.json()

    def build_params(self, filters: Dict[str, Any], options: Dict[str, Any]) -> Dict[str, Any]:
        """Build query parameters from filters and client options."""
        params = {}
        for name, value in filters.items():
            if value is None:
                continue
            params[self.filter_params.get(name, name)] = value
        params.update(options.get("parameters") or {})
        return params

    def extract_results(self, data: Any) -> List[Any]:
        """Extract the list items from a list response."""
        if data is None:
            return []
        if self.results_key:
            return list(data.get(self.results_key) or [])
        if isinstance(data, list):
            return data
        raise ClientError(
            f'Unexpected list response for synchronization "{self.sync.id}"'
        )

    def extract_item(self, data: Any) -> Any:
        if self.item_key and isinstance(data, dict):
            return data.get(self.item_key)
        return data

    async def list(
        self,
        filters: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Optional[Union[RemoteListIterator, List[Any]]]:
        """List remote entities, through an iterator when paginated."""
        filters = filters or {}
        options = options or {}
        if self.supports_paging():
            return self.iterator(filters, options)

        data = await self.request(
            "GET",
            self.resource_path,
            params=self.build_params(filters, options),
        )
        return self.extract_results(data)

    async def list_page(
        self,
        filters: Dict[str, Any],
        options: Dict[str, Any],
        page: int,
        limit: int,
    ) -> Tuple[List[Any], Optional[int]]:
        """Fetch one page of the collection."""
        params = self.build_params(filters, options)
        params[self.page_param] = page
        params[self.limit_param] = limit

        data = await self.request("GET", self.resource_path, params=params)
        total_pages = None
        if isinstance(data, dict) and self.total_pages_key in data:
            total_pages = int(data[self.total_pages_key])
        return self.extract_results(data), total_pages

    def item_url(self, remote_id: Any) -> str:
        return f"{self.resource_path.rstrip('/')}/{remote_id}"

    async def get(self, remote_id: Any) -> Any:
        """Get a remote entity, or None if the API does not know it."""
        try:
            data = await self.request("GET", self.item_url(remote_id))
        except ClientError as e:
            if e.status_code == 404:
                return None
            raise
        return self.extract_item(data)

    async def create(self, fields: Dict[str, Any]) -> Any:
        data = await self.request("POST", self.resource_path, json=fields)
        return self.extract_item(data)

    async def update(self, remote_id: Any, fields: Dict[str, Any]) -> Any:
        data = await self.request(self.update_method, self.item_url(remote_id), json=fields)
        return self.extract_item(data)

    async def aclose(self) -> None:
        await self.http_client.aclose()
