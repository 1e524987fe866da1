"""Base backend interface for the query pipeline.

A backend is the authenticated handle to the remote search capability. The
search session consumes exactly this interface, so tests and alternative
servers only need to implement it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models import Alias, IndexSchema


class BackendStatus(Enum):
    """Backend availability status."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


@dataclass
class BackendResponse:
    """Raw outcome of one search call.

    ``payload`` holds the decoded JSON body on success. On failure
    ``status`` is ERROR, ``error_message`` describes the failure and
    ``status_code`` carries the HTTP status when the server answered.
    """

    status: BackendStatus
    payload: Optional[Dict[str, Any]] = None
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    query_time_ms: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.status == BackendStatus.AVAILABLE and self.payload is not None


class SearchBackend(ABC):
    """Abstract base class for search backends."""

    name: str = "backend"

    def __init__(self) -> None:
        self._status = BackendStatus.UNAVAILABLE
        self._last_error: Optional[str] = None
        self._initialized = False

    @property
    def status(self) -> BackendStatus:
        return self._status

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def ready(self) -> bool:
        """True once initialized and available; queries must not run otherwise."""
        self.ensure_initialized()
        return self._status == BackendStatus.AVAILABLE

    def ensure_initialized(self) -> None:
        """Run ``_initialize`` once, on first use."""
        if not self._initialized:
            self._initialize()
            self._initialized = True

    @abstractmethod
    def _initialize(self) -> None:
        """Check configuration and set the initial status. Must not do network I/O."""
        pass

    def _update_status(self, status: BackendStatus, error: Optional[str] = None) -> None:
        self._status = status
        self._last_error = error

    @abstractmethod
    async def search(self, index_name: str, params: Dict[str, Any]) -> BackendResponse:
        """Run one search against ``index_name`` with wire-format ``params``.

        Failures are reported in the returned BackendResponse, not raised.
        """
        pass

    @abstractmethod
    async def list_indexes(self) -> List[IndexSchema]:
        """Fetch every index schema."""
        pass

    @abstractmethod
    async def get_index(self, index_name: str) -> IndexSchema:
        """Fetch one index schema.

        Raises:
            IndexNotFoundError: If the index does not exist
        """
        pass

    @abstractmethod
    async def list_aliases(self) -> List[Alias]:
        pass

    @abstractmethod
    async def create_document(self, index_name: str, document: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def update_document(self, index_name: str, document_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def delete_document(self, index_name: str, document_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the server is reachable and healthy."""
        pass

    async def aclose(self) -> None:
        """Release transport resources."""
        return None
