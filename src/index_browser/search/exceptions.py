"""Search-specific exceptions with structured error responses.

Every failure the query pipeline can surface is a :class:`SearchException`
carrying a category, a cause and the action the operator can take. The search
session turns these into the ``error`` / ``validation_message`` fields of the
results read model instead of letting them propagate into the UI.

Superseded (stale) responses are not represented here: they are dropped
silently and never reach the read model.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Categories of search errors for classification and handling."""

    VALIDATION = "validation"
    RESOLUTION = "resolution"
    TRANSPORT = "transport"
    AUTHENTICATION = "authentication"
    NOT_READY = "not_ready"


class SearchException(Exception):
    """Base exception for query pipeline failures.

    All search exceptions include:
    - Human-readable error message
    - Error category for classification
    - Detailed cause
    - The action required to recover
    - Whether the operator may retry the same request as-is
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        cause: str,
        index_name: Optional[str] = None,
        required_action: str = "",
        retryable: bool = False,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.cause = cause
        self.index_name = index_name
        self.required_action = required_action
        self.retryable = retryable
        self.status_code = status_code

    def to_response(self) -> Dict[str, Any]:
        """Convert the exception to a structured error payload.

        Returns:
            Dict with ``error``, ``error_category``, ``details`` and ``fix`` keys
        """
        response: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "error_category": self.category.value,
            "details": {
                "cause": self.cause,
                "index_name": self.index_name,
            },
            "fix": {
                "required_action": self.required_action,
                "retryable": self.retryable,
            },
        }

        if self.status_code is not None:
            response["details"]["status_code"] = self.status_code

        return response


class QueryValidationError(SearchException):
    """Raised when a request cannot be dispatched as composed.

    Covers a missing index selection and an empty list of fields to search.
    Recovered locally: the dispatch is skipped and the message shown inline.
    """

    def __init__(self, cause: str, index_name: Optional[str] = None):
        super().__init__(
            message=cause,
            category=ErrorCategory.VALIDATION,
            cause=cause,
            index_name=index_name,
            required_action="Select an index and at least one field to search",
        )


class IndexNotFoundError(SearchException):
    """Raised when the server reports the target index does not exist.

    Usually an alias whose collection was deleted after the alias was created.
    Not retried automatically.
    """

    def __init__(self, index_name: str, requested_name: Optional[str] = None, cause: str = ""):
        via_alias = requested_name and requested_name != index_name
        message = (
            f"Alias '{requested_name}' points to missing index '{index_name}'"
            if via_alias
            else f"Index '{index_name}' not found"
        )
        super().__init__(
            message=message,
            category=ErrorCategory.RESOLUTION,
            cause=cause or "The server returned 404 for the search request",
            index_name=index_name,
            required_action="Re-point the alias or choose another index",
            status_code=404,
        )
        self.requested_name = requested_name


class TransportError(SearchException):
    """Raised for network failures and unexpected server responses.

    Prior successful results stay displayed; the operator decides whether to retry.
    """

    def __init__(
        self,
        cause: str,
        index_name: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(
            message="Search request failed",
            category=ErrorCategory.TRANSPORT,
            cause=cause,
            index_name=index_name,
            required_action="Check the connection and retry",
            retryable=True,
            status_code=status_code,
        )


class AuthenticationError(TransportError):
    """Raised when the server rejects the API key (401/403)."""

    def __init__(self, cause: str, index_name: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(cause=cause, index_name=index_name, status_code=status_code)
        self.message = "Search server rejected the API key"
        self.category = ErrorCategory.AUTHENTICATION
        self.required_action = "Update the connection's API key"
        self.retryable = False
        self.args = (self.message,)


class BackendNotReadyError(SearchException):
    """Raised when a query is attempted before the connection is ready."""

    def __init__(self, cause: str = "No active connection"):
        super().__init__(
            message="Search backend is not ready",
            category=ErrorCategory.NOT_READY,
            cause=cause,
            required_action="Connect to a server first",
        )
