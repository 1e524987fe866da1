"""Typesense backend over the HTTP API.

Endpoints used:
- GET    /health
- GET    /collections, /collections/{name}
- GET    /aliases
- GET    /collections/{name}/documents/search
- POST   /collections/{name}/documents
- PATCH  /collections/{name}/documents/{id}
- DELETE /collections/{name}/documents/{id}

Requests carry the API key in the ``X-TYPESENSE-API-KEY`` header. Timeouts
are enforced by the HTTP client only.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from ...config.settings import ConnectionConfig
from ...constants import API_KEY_HEADER
from ..exceptions import AuthenticationError, IndexNotFoundError, TransportError
from ..models import Alias, IndexSchema
from .base import BackendResponse, BackendStatus, SearchBackend

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Extract Typesense's ``{"message": ...}`` body, falling back to raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code}"


def raise_for_response(response: httpx.Response, index_name: Optional[str] = None) -> None:
    """Translate an error response into the search exception hierarchy.

    Raises:
        IndexNotFoundError: On 404 when an index was addressed
        AuthenticationError: On 401/403
        TransportError: On any other non-success status
    """
    if response.is_success:
        return

    message = _error_message(response)
    if response.status_code == 404 and index_name:
        raise IndexNotFoundError(index_name, cause=message)
    if response.status_code in (401, 403):
        raise AuthenticationError(cause=message, index_name=index_name, status_code=response.status_code)
    raise TransportError(cause=message, index_name=index_name, status_code=response.status_code)


class TypesenseBackend(SearchBackend):
    """Async Typesense client bound to one connection."""

    name = "typesense"

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _initialize(self) -> None:
        result = self.config.validate()
        if not result.success:
            self._update_status(BackendStatus.UNAVAILABLE, "; ".join(result.errors))
            logger.warning(f"Typesense connection not configured: {self._last_error}")
            return

        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            headers={API_KEY_HEADER: self.config.api_key or ""},
            timeout=httpx.Timeout(self.config.timeout, connect=self.config.timeout),
            transport=self._transport,
        )
        self._update_status(BackendStatus.AVAILABLE)
        logger.info(f"Initialized Typesense client for {self.config.base_url}")

    def _require_client(self) -> httpx.AsyncClient:
        self.ensure_initialized()
        if self._client is None:
            raise TransportError(cause=self._last_error or "Typesense client not initialized")
        return self._client

    @staticmethod
    def _collection_path(index_name: str) -> str:
        return f"/collections/{quote(index_name, safe='')}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        index_name: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        client = self._require_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(cause=f"{type(e).__name__}: {e}", index_name=index_name) from e
        raise_for_response(response, index_name)
        return response.json()

    async def search(self, index_name: str, params: Dict[str, Any]) -> BackendResponse:
        start_time = time.time()
        try:
            client = self._require_client()
        except TransportError as e:
            return BackendResponse(status=BackendStatus.UNAVAILABLE, error_message=e.cause)

        try:
            response = await client.get(f"{self._collection_path(index_name)}/documents/search", params=params)
        except httpx.HTTPError as e:
            query_time = (time.time() - start_time) * 1000
            logger.warning(f"Search on '{index_name}' failed after {query_time:.0f}ms: {e}")
            return BackendResponse(
                status=BackendStatus.ERROR,
                error_message=f"{type(e).__name__}: {e}",
                query_time_ms=query_time,
            )

        query_time = (time.time() - start_time) * 1000
        if not response.is_success:
            return BackendResponse(
                status=BackendStatus.ERROR,
                status_code=response.status_code,
                error_message=_error_message(response),
                query_time_ms=query_time,
            )

        try:
            payload = response.json()
        except ValueError as e:
            return BackendResponse(
                status=BackendStatus.ERROR,
                status_code=response.status_code,
                error_message=f"Invalid JSON in search response: {e}",
                query_time_ms=query_time,
            )

        return BackendResponse(
            status=BackendStatus.AVAILABLE,
            payload=payload,
            status_code=response.status_code,
            query_time_ms=query_time,
        )

    async def list_indexes(self) -> List[IndexSchema]:
        data = await self._request("GET", "/collections")
        return [IndexSchema.from_wire(item) for item in data]

    async def get_index(self, index_name: str) -> IndexSchema:
        data = await self._request("GET", self._collection_path(index_name), index_name=index_name)
        return IndexSchema.from_wire(data)

    async def list_aliases(self) -> List[Alias]:
        data = await self._request("GET", "/aliases")
        return [Alias.from_wire(item) for item in data.get("aliases", [])]

    async def create_document(self, index_name: str, document: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "POST", f"{self._collection_path(index_name)}/documents", index_name=index_name, json=document
        )

    async def update_document(self, index_name: str, document_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "PATCH",
            f"{self._collection_path(index_name)}/documents/{quote(document_id, safe='')}",
            index_name=index_name,
            json=document,
        )

    async def delete_document(self, index_name: str, document_id: str) -> Dict[str, Any]:
        return await self._request(
            "DELETE",
            f"{self._collection_path(index_name)}/documents/{quote(document_id, safe='')}",
            index_name=index_name,
        )

    async def health_check(self) -> bool:
        try:
            data = await self._request("GET", "/health")
        except TransportError as e:
            self._update_status(BackendStatus.ERROR, f"Health check failed: {e.cause}")
            return False
        healthy = bool(data.get("ok"))
        if healthy:
            self._update_status(BackendStatus.AVAILABLE)
        else:
            self._update_status(BackendStatus.ERROR, "Server reported unhealthy")
        return healthy

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._initialized = False
        self._update_status(BackendStatus.UNAVAILABLE)
