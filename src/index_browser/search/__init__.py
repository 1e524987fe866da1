"""Search composition, dispatch and result reconciliation for Typesense indexes."""

from .catalog import IndexCatalog
from .exceptions import (
    AuthenticationError,
    BackendNotReadyError,
    ErrorCategory,
    IndexNotFoundError,
    QueryValidationError,
    SearchException,
    TransportError,
)
from .models import (
    Alias,
    Hit,
    Highlight,
    IndexSchema,
    NumericRange,
    SchemaField,
    SearchRequest,
    SearchResponse,
    StringPrefix,
)
from .session import SearchSession
from .state import CurrentResults, SearchState, StateStore

__all__ = [
    "Alias",
    "AuthenticationError",
    "BackendNotReadyError",
    "CurrentResults",
    "ErrorCategory",
    "Highlight",
    "Hit",
    "IndexCatalog",
    "IndexNotFoundError",
    "IndexSchema",
    "NumericRange",
    "QueryValidationError",
    "SchemaField",
    "SearchException",
    "SearchRequest",
    "SearchResponse",
    "SearchSession",
    "SearchState",
    "StateStore",
    "StringPrefix",
    "TransportError",
]
