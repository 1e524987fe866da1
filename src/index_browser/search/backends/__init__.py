"""Search backends."""

from .base import BackendResponse, BackendStatus, SearchBackend
from .typesense import TypesenseBackend

__all__ = ["BackendResponse", "BackendStatus", "SearchBackend", "TypesenseBackend"]
