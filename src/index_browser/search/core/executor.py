"""Query execution with generation-based staleness checks.

Each call to :meth:`QueryExecutor.execute` takes a new generation from the
shared :class:`GenerationCounter` before the backend is called. When the
backend answers, success or failure, the outcome is returned only if no newer
request was dispatched in the meantime; otherwise it is dropped and
``execute`` returns ``None``. This is what keeps a slow answer to an old query
from overwriting a fast answer to a newer one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from ...constants import MATCH_ALL_QUERY
from ..backends.base import SearchBackend
from ..exceptions import (
    AuthenticationError,
    BackendNotReadyError,
    IndexNotFoundError,
    QueryValidationError,
    SearchException,
    TransportError,
)
from ..models import SearchRequest, SearchResponse
from ..utils.query_logger import log_dispatch, log_outcome
from .aliases import AliasResolver
from .debounce import GenerationCounter

logger = logging.getLogger(__name__)


def build_search_params(request: SearchRequest) -> Dict[str, Any]:
    """Translate a request into Typesense search parameters.

    ``q`` falls back to the match-all token; ``filter_by``, ``sort_by`` and
    ``facet_by`` are only sent when non-empty.

    >>> build_search_params(SearchRequest("books", query_by_fields=("title", "author")))
    {'q': '*', 'query_by': 'title,author', 'page': 1, 'per_page': 25}
    """
    params: Dict[str, Any] = {
        "q": request.text.strip() or MATCH_ALL_QUERY,
        "query_by": ",".join(request.query_by_fields),
        "page": request.page,
        "per_page": request.per_page,
    }
    if request.filter_by and request.filter_by.strip():
        params["filter_by"] = request.filter_by
    if request.sort_by and request.sort_by.strip():
        params["sort_by"] = request.sort_by
    if request.facet_by:
        params["facet_by"] = ",".join(request.facet_by)
    return params


@dataclass(frozen=True)
class QueryOutcome:
    """Result of a search that was still current when it completed."""

    generation: int
    request: SearchRequest
    index_name: str
    response: Optional[SearchResponse] = None
    error: Optional[SearchException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.response is not None


class QueryExecutor:
    """Validate, dispatch and classify searches against one backend."""

    def __init__(
        self,
        backend: SearchBackend,
        generations: GenerationCounter,
        resolver: Optional[AliasResolver] = None,
    ):
        self.backend = backend
        self.generations = generations
        self.resolver = resolver or AliasResolver()

    @staticmethod
    def validate(request: SearchRequest) -> None:
        """Reject requests that must not reach the network.

        Raises:
            QueryValidationError: No index selected, or no fields to search
        """
        if not request.index_name:
            raise QueryValidationError("Select an index to search")
        if not request.query_by_fields:
            raise QueryValidationError(
                "Select at least one field to search (query_by)", index_name=request.index_name
            )

    def _classify(self, request: SearchRequest, index_name: str, status_code: Optional[int], message: str) -> SearchException:
        if status_code == 404:
            return IndexNotFoundError(index_name, requested_name=request.index_name, cause=message)
        if status_code in (401, 403):
            return AuthenticationError(cause=message, index_name=index_name, status_code=status_code)
        return TransportError(cause=message, index_name=index_name, status_code=status_code)

    async def execute(self, request: SearchRequest) -> Optional[QueryOutcome]:
        """Run ``request``; return its outcome, or None if it was superseded.

        Raises:
            QueryValidationError: Before any generation is taken
            BackendNotReadyError: If the connection is not ready
        """
        self.validate(request)
        if not self.backend.ready:
            raise BackendNotReadyError(self.backend.last_error or "No active connection")

        index_name = self.resolver.resolve_to_index(request.index_name)
        params = build_search_params(request)

        generation = self.generations.mint()
        context = log_dispatch(generation, index_name, params)

        try:
            backend_response = await self.backend.search(index_name, params)
        except SearchException as e:
            if not self.generations.is_latest(generation):
                log_outcome(context, applied=False)
                return None
            log_outcome(context, applied=True, error=e.message)
            return QueryOutcome(generation, request, index_name, error=e)

        if not self.generations.is_latest(generation):
            log_outcome(context, applied=False)
            return None

        if not backend_response.ok:
            error = self._classify(
                request,
                index_name,
                backend_response.status_code,
                backend_response.error_message or "Search failed",
            )
            log_outcome(context, applied=True, error=f"{error.message}: {error.cause}")
            return QueryOutcome(generation, request, index_name, error=error)

        try:
            response = SearchResponse.from_wire(backend_response.payload)
        except PydanticValidationError as e:
            error = TransportError(cause=f"Malformed search response: {e}", index_name=index_name)
            log_outcome(context, applied=True, error=error.cause)
            return QueryOutcome(generation, request, index_name, error=error)

        log_outcome(context, applied=True, found=response.found)
        return QueryOutcome(generation, request, index_name, response=response)
