"""Helper utilities for tests."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

from index_browser.search.backends.base import BackendResponse, BackendStatus, SearchBackend
from index_browser.search.exceptions import IndexNotFoundError
from index_browser.search.models import Alias, IndexSchema, SchemaField


def products_schema(name: str = "products_v2") -> IndexSchema:
    """A small catalogue schema with numeric, string and array fields."""
    return IndexSchema(
        name=name,
        fields=(
            SchemaField("name", "string"),
            SchemaField("description", "string"),
            SchemaField("tags", "string[]", facet=True),
            SchemaField("brand", "string", facet=True),
            SchemaField("price", "float"),
            SchemaField("age", "int32"),
            SchemaField("created_at", "int64"),
        ),
        default_sorting_field="created_at",
        num_documents=3,
    )


def make_hit(document: Dict[str, Any], text_match: int = 100, highlights: Sequence[Dict[str, Any]] = ()) -> Dict[str, Any]:
    return {"document": document, "text_match": text_match, "highlights": list(highlights)}


def make_payload(found: int, hits: Sequence[Dict[str, Any]] = (), search_time_ms: int = 1) -> Dict[str, Any]:
    return {"found": found, "hits": list(hits), "search_time_ms": search_time_ms, "out_of": found, "page": 1}


def ok_response(payload: Dict[str, Any]) -> BackendResponse:
    return BackendResponse(status=BackendStatus.AVAILABLE, payload=payload, status_code=200)


def error_response(status_code: Optional[int], message: str) -> BackendResponse:
    return BackendResponse(status=BackendStatus.ERROR, status_code=status_code, error_message=message)


async def drain(iterations: int = 5) -> None:
    """Let tasks scheduled on the loop run up to their next real wait."""
    for _ in range(iterations):
        await asyncio.sleep(0)


class FakeBackend(SearchBackend):
    """In-memory backend recording every search call.

    By default each search answers with ``default_payload`` or the next entry
    queued in ``responses``. With ``manual`` set, each search waits on a
    future appended to ``pending`` so tests control completion order.
    """

    name = "fake"

    def __init__(
        self,
        schemas: Sequence[IndexSchema] = (),
        aliases: Sequence[Alias] = (),
        available: bool = True,
    ):
        super().__init__()
        self.schemas = list(schemas)
        self.aliases = list(aliases)
        self.available = available
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.responses: List[BackendResponse] = []
        self.default_payload = make_payload(0)
        self.manual = False
        self.pending: List[asyncio.Future] = []
        self.documents: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.list_calls = 0
        self.alias_error: Optional[Exception] = None

    def _initialize(self) -> None:
        if self.available:
            self._update_status(BackendStatus.AVAILABLE)
        else:
            self._update_status(BackendStatus.UNAVAILABLE, "Server URL is required")

    @property
    def last_params(self) -> Dict[str, Any]:
        return self.calls[-1][1]

    async def search(self, index_name: str, params: Dict[str, Any]) -> BackendResponse:
        self.calls.append((index_name, dict(params)))
        if self.manual:
            future = asyncio.get_running_loop().create_future()
            self.pending.append(future)
            return await future
        if self.responses:
            return self.responses.pop(0)
        return ok_response(self.default_payload)

    async def list_indexes(self) -> List[IndexSchema]:
        self.list_calls += 1
        return list(self.schemas)

    async def get_index(self, index_name: str) -> IndexSchema:
        for schema in self.schemas:
            if schema.name == index_name:
                return schema
        raise IndexNotFoundError(index_name)

    async def list_aliases(self) -> List[Alias]:
        if self.alias_error is not None:
            raise self.alias_error
        return list(self.aliases)

    async def create_document(self, index_name: str, document: Dict[str, Any]) -> Dict[str, Any]:
        self.documents.setdefault(index_name, {})[str(document["id"])] = dict(document)
        return document

    async def update_document(self, index_name: str, document_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        stored = self.documents.setdefault(index_name, {}).setdefault(document_id, {"id": document_id})
        stored.update(document)
        return dict(stored)

    async def delete_document(self, index_name: str, document_id: str) -> Dict[str, Any]:
        return self.documents.get(index_name, {}).pop(document_id, {"id": document_id})

    async def health_check(self) -> bool:
        return self.available
