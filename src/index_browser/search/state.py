"""Immutable search state snapshots and the results read model.

Every setter on the search session produces a new :class:`SearchState` and
publishes it through :class:`StateStore`; subscribers receive the previous
and the new snapshot and recompute from them. No stage holds mutable state
shared with another.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ConfigDict, Field

from ..constants import DEFAULT_PAGE_SIZE
from .core.filter_compiler import FilterDrafts
from .core.highlighting import RenderedHit
from .models import DictAccessibleModel, Hit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchState:
    """Everything the operator has chosen, as of one edit.

    ``text``, ``query_by_fields`` and ``sort_by`` are the applied values.
    ``applied_raw_filter`` drives the request while the drafts are in raw
    mode; in structured mode the filter is compiled from ``drafts``.
    """

    index_name: Optional[str] = None
    text: str = ""
    query_by_fields: Tuple[str, ...] = ()
    sort_by: str = ""
    applied_raw_filter: str = ""
    drafts: FilterDrafts = field(default_factory=FilterDrafts)
    page: int = 1
    per_page: int = DEFAULT_PAGE_SIZE
    facet_by: Tuple[str, ...] = ()


Listener = Callable[[SearchState, SearchState], None]


class StateStore:
    """Holds the current snapshot and notifies subscribers of replacements."""

    def __init__(self, initial: Optional[SearchState] = None):
        self._state = initial or SearchState()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> SearchState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, **changes: Any) -> SearchState:
        """Publish a snapshot with ``changes`` applied. No-op if nothing changed."""
        previous = self._state
        current = replace(previous, **changes)
        if current == previous:
            return previous
        self._state = current
        for listener in list(self._listeners):
            listener(previous, current)
        return current


class CurrentResults(DictAccessibleModel):
    """Read model exposed to the UI.

    Results are replaced wholesale by each applied response. A failed
    request sets ``error`` but leaves the previous hits in place.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    index_name: Optional[str] = None
    found: int = 0
    hits: List[Hit] = Field(default_factory=list)
    rendered: List[RenderedHit] = Field(default_factory=list)
    elapsed_ms: float = 0
    is_loading: bool = False
    error: Optional[Dict[str, Any]] = None
    validation_message: Optional[str] = None
    page: int = 1
    per_page: int = DEFAULT_PAGE_SIZE
    total_pages: int = 0
    generation: Optional[int] = None

    def evolve(self, **changes: Any) -> CurrentResults:
        return self.model_copy(update=changes)
