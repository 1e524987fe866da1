"""Index Browser - query composition and result presentation for Typesense.

Builds search requests from structured or raw filter input, debounces and
dispatches them, discards superseded responses, and reconciles hits with
highlight metadata for display.
"""

from __future__ import annotations

from .config import BrowserSettings, ConnectionConfig
from .search import CurrentResults, IndexCatalog, SearchSession
from .search.backends import TypesenseBackend
from .search.core import FilterMode

__version__ = "0.1.0"

__all__ = [
    "BrowserSettings",
    "ConnectionConfig",
    "CurrentResults",
    "FilterMode",
    "IndexCatalog",
    "SearchSession",
    "TypesenseBackend",
    "__version__",
]
