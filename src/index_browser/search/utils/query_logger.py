"""Structured logging of query dispatches and outcomes.

Compact one-line logs by default; full wire parameters only when debug
logging is enabled for the current context (e.g. while diagnosing a filter
expression the server rejects).
"""

import json
import logging
import time
from contextvars import ContextVar
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_debug_mode: ContextVar[bool] = ContextVar("index_browser_query_debug", default=False)


def set_debug_mode(enabled: bool) -> None:
    """Enable or disable verbose query logging for the current context."""
    _debug_mode.set(enabled)


def is_debug_enabled() -> bool:
    return _debug_mode.get(False)


def sanitize_for_logging(data: Any, max_length: int = 500) -> Any:
    """Truncate long strings and long lists so log lines stay bounded.

    Args:
        data: Data to sanitize
        max_length: Maximum string length before truncation

    Returns:
        A copy safe to serialize into a log line
    """
    if isinstance(data, str):
        if len(data) > max_length:
            return f"{data[:max_length]}... (truncated, {len(data)} chars total)"
        return data
    elif isinstance(data, dict):
        return {k: sanitize_for_logging(v, max_length) for k, v in data.items()}
    elif isinstance(data, (list, tuple)):
        if len(data) > 10:
            return [sanitize_for_logging(item, max_length) for item in data[:10]] + [
                f"... ({len(data) - 10} more items)"
            ]
        return [sanitize_for_logging(item, max_length) for item in data]
    else:
        return data


def log_dispatch(generation: int, index_name: str, params: Dict[str, Any]) -> Dict[str, Any]:
    """Log a dispatched search.

    Returns:
        Context dict for :func:`log_outcome`
    """
    start_time = time.time()

    if is_debug_enabled():
        log_data = {
            "event": "search_dispatch",
            "generation": generation,
            "index": index_name,
            "params": sanitize_for_logging(params),
        }
        logger.info("Search dispatch: %s", json.dumps(log_data, default=str))
    else:
        logger.debug(f"Search #{generation} on '{index_name}' page {params.get('page')}")

    return {"start_time": start_time, "generation": generation, "index": index_name}


def log_outcome(
    context: Dict[str, Any],
    *,
    applied: bool,
    found: Optional[int] = None,
    error: Optional[str] = None,
) -> None:
    """Log how a dispatched search ended.

    Args:
        context: Context dict from log_dispatch
        applied: False when the result was discarded as superseded
        found: Hit count on success
        error: Error message on failure
    """
    elapsed_ms = (time.time() - context["start_time"]) * 1000
    generation = context["generation"]
    index_name = context["index"]

    if not applied:
        logger.debug(f"Search #{generation} on '{index_name}' superseded, discarded ({elapsed_ms:.2f}ms)")
    elif error is not None:
        logger.warning(f"Search #{generation} on '{index_name}' failed: {error} ({elapsed_ms:.2f}ms)")
    else:
        logger.debug(f"Search #{generation} on '{index_name}' found {found} ({elapsed_ms:.2f}ms)")
