"""Search session: the imperative surface over the query pipeline.

Setters publish new :class:`SearchState` snapshots. The session subscribes to
its own store and, for every snapshot, derives the :class:`SearchRequest` it
implies; when that request differs from the last one dispatched, it is sent
through the executor as a background task. Responses land in the
:class:`CurrentResults` read model only if they are still the latest.

Dispatch timing per input:
- free-text query and raw filter string: debounced
- structured field constraints, sort, query_by, page, page size: immediate
- index switch: flushes pending debounced edits, then dispatches once

Any change to text, filter, sort, query_by or index resets the page to 1;
a page change alone reuses the current compiled values.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Set

from ..config.settings import BrowserSettings
from .backends.base import SearchBackend
from .catalog import IndexCatalog
from .core.debounce import RAW_FILTER_CHANNEL, TEXT_QUERY_CHANNEL, DebounceCoordinator
from .core.executor import QueryExecutor, QueryOutcome
from .core.filter_compiler import FilterCompiler, FilterDrafts, FilterMode
from .core.highlighting import ResultReconciler
from .core.pagination import PaginationController, total_pages
from .exceptions import BackendNotReadyError, QueryValidationError, SearchException
from .models import FieldConstraint, IndexSchema, NumericRange, SearchRequest, StringPrefix
from .state import CurrentResults, SearchState, StateStore

logger = logging.getLogger(__name__)

ResultsListener = Callable[[CurrentResults], None]


class SearchSession:
    """Compose, dispatch and track searches for one connection."""

    def __init__(
        self,
        backend: SearchBackend,
        settings: Optional[BrowserSettings] = None,
        catalog: Optional[IndexCatalog] = None,
    ):
        self.settings = settings or BrowserSettings()
        self.settings.validate_or_raise()

        self.backend = backend
        self.catalog = catalog or IndexCatalog(backend)
        self.coordinator = DebounceCoordinator(self.settings.debounce_seconds)
        self.executor = QueryExecutor(backend, self.coordinator.generations, self.catalog.resolver)
        self.store = StateStore(SearchState(per_page=self.settings.default_page_size))

        self._results = CurrentResults(per_page=self.settings.default_page_size)
        self._results_listeners: List[ResultsListener] = []
        self._tasks: Set[asyncio.Task] = set()
        self._latest_task: Optional[asyncio.Task] = None
        self._last_request: Optional[SearchRequest] = None
        self._text_draft = ""
        self._batch_depth = 0
        self._dirty = False

        self.store.subscribe(self._on_state_change)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> SearchState:
        return self.store.state

    @property
    def current_results(self) -> CurrentResults:
        return self._results

    @property
    def text_draft(self) -> str:
        """Text typed into the query box, including edits not yet dispatched."""
        return self._text_draft

    @property
    def schema(self) -> Optional[IndexSchema]:
        return self.catalog.schema_for(self.state.index_name)

    @property
    def compiler(self) -> FilterCompiler:
        return FilterCompiler(self.schema)

    @property
    def compiled_filter(self) -> str:
        """The structured draft compiled against the selected index."""
        return self.compiler.compile(self.state.drafts.structured)

    @property
    def active_filter(self) -> str:
        """The filter driving requests in the current mode."""
        return self.compiler.effective_filter(self.state.drafts, self.state.applied_raw_filter)

    @property
    def mode(self) -> FilterMode:
        return self.state.drafts.mode

    @property
    def pagination(self) -> PaginationController:
        return PaginationController(self._results.found, self.state.per_page, self.state.page)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def request_for(self, state: SearchState) -> SearchRequest:
        """Derive the request a snapshot implies."""
        compiler = FilterCompiler(self.catalog.schema_for(state.index_name))
        filter_by = compiler.effective_filter(state.drafts, state.applied_raw_filter)
        return SearchRequest(
            index_name=state.index_name,
            text=state.text,
            query_by_fields=state.query_by_fields,
            filter_by=filter_by or None,
            sort_by=state.sort_by or None,
            page=state.page,
            per_page=state.per_page,
            facet_by=state.facet_by,
        )

    def subscribe(self, listener: ResultsListener) -> Callable[[], None]:
        """Call ``listener`` with every new results read model."""
        self._results_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._results_listeners:
                self._results_listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def activate(self) -> None:
        """Load schemas and aliases for the connection.

        Raises:
            BackendNotReadyError: If the backend is not ready
        """
        if not self.backend.ready:
            raise BackendNotReadyError(self.backend.last_error or "No active connection")
        await self.catalog.load()
        self.executor.resolver = self.catalog.resolver

    async def switch_backend(self, backend: SearchBackend) -> None:
        """Move the session to another connection, discarding index-specific state."""
        self.coordinator.cancel_all()
        self._cancel_in_flight()
        self.coordinator.generations.mint()

        self.backend = backend
        self.catalog.backend = backend
        self.catalog.invalidate()
        self.executor.backend = backend

        with self._batched():
            self._text_draft = ""
            self.store.update(
                index_name=None,
                text="",
                query_by_fields=(),
                sort_by="",
                applied_raw_filter="",
                drafts=FilterDrafts(),
                page=1,
            )
        self._last_request = None
        self._set_results(CurrentResults(per_page=self.state.per_page))
        await self.activate()

    async def reload_catalog(self) -> None:
        """Refetch schemas and aliases after a document, index or alias mutation.

        The previous snapshot stays in place if the fetch fails.
        """
        await self.catalog.load()
        self.executor.resolver = self.catalog.resolver

    def apply_settings(self, settings: BrowserSettings) -> None:
        """Adopt new settings; a page size change resets to page 1."""
        settings.validate_or_raise()
        self.settings = settings
        self.coordinator.delay_seconds = settings.debounce_seconds
        if settings.default_page_size != self.state.per_page:
            self.set_per_page(settings.default_page_size)

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def select_index(self, name: Optional[str], query_by_fields: Optional[Sequence[str]] = None) -> Optional[asyncio.Task]:
        """Switch index, flushing pending debounced edits, and dispatch at once.

        When ``query_by_fields`` is omitted and the current fields do not all
        exist in the new index, the index's searchable string fields are used.
        """
        with self._batched():
            self.coordinator.flush_all()
            state = self.state
            schema = self.catalog.schema_for(name)

            changes: Dict[str, Any] = {"index_name": name, "page": 1}
            if name != state.index_name:
                changes["sort_by"] = ""
            if query_by_fields is not None:
                changes["query_by_fields"] = tuple(query_by_fields)
            elif schema is not None and (
                not state.query_by_fields
                or any(schema.get_field(f) is None for f in state.query_by_fields)
            ):
                changes["query_by_fields"] = tuple(schema.searchable_fields())

            self.store.update(**changes)
        return self._latest_task

    def set_text_query(self, text: str) -> None:
        """Record a keystroke; the query is dispatched once typing settles."""
        self._text_draft = text
        self.coordinator.submit(TEXT_QUERY_CHANNEL, text, self._apply_text)

    def _apply_text(self, text: str) -> None:
        state = self.state
        if text == state.text:
            return
        self.store.update(text=text, page=1)

    def set_filter_field(self, field_name: str, constraint: Optional[FieldConstraint]) -> None:
        """Set or clear one structured constraint; recompiles synchronously."""
        state = self.state
        drafts = state.drafts.with_constraint(field_name, constraint)
        changes: Dict[str, Any] = {"drafts": drafts}

        if not drafts.is_raw:
            compiler = self.compiler
            if compiler.compile(drafts.structured) != compiler.compile(state.drafts.structured):
                changes["page"] = 1

        self.store.update(**changes)

    def set_numeric_range(self, field_name: str, min_value=None, max_value=None) -> None:
        self.set_filter_field(field_name, NumericRange(min=min_value, max=max_value))

    def set_string_prefix(self, field_name: str, value: str) -> None:
        self.set_filter_field(field_name, StringPrefix(value))

    def clear_filters(self) -> None:
        """Reset every structured constraint."""
        state = self.state
        drafts = state.drafts.clear_structured()
        changes: Dict[str, Any] = {"drafts": drafts}
        if not drafts.is_raw and self.compiled_filter:
            changes["page"] = 1
        self.store.update(**changes)

    def set_raw_filter(self, filter_by: str) -> None:
        """Edit the raw filter draft; in raw mode it is applied once typing settles."""
        self.store.update(drafts=self.state.drafts.with_raw(filter_by=filter_by))
        if self.state.drafts.is_raw:
            self.coordinator.submit(RAW_FILTER_CHANNEL, filter_by, self._apply_raw_filter)

    def _apply_raw_filter(self, filter_by: str) -> None:
        state = self.state
        if not state.drafts.is_raw or filter_by == state.applied_raw_filter:
            return
        self.store.update(applied_raw_filter=filter_by, page=1)

    def edit_raw(self, **changes: str) -> None:
        """Edit raw ``text``, ``query_by`` or ``sort_by`` drafts; applied by :meth:`apply_raw`."""
        unknown = set(changes) - {"text", "query_by", "sort_by"}
        if unknown:
            raise ValueError(f"Unknown raw draft fields: {sorted(unknown)}")
        self.store.update(drafts=self.state.drafts.with_raw(**changes))

    def apply_raw(self) -> Optional[asyncio.Task]:
        """Apply every raw draft value at once."""
        state = self.state
        if not state.drafts.is_raw:
            return None

        self.coordinator.cancel(RAW_FILTER_CHANNEL)
        self.coordinator.cancel(TEXT_QUERY_CHANNEL)
        raw = state.drafts.raw
        self._text_draft = raw.text

        changes: Dict[str, Any] = {
            "text": raw.text,
            "query_by_fields": raw.query_by_fields,
            "applied_raw_filter": raw.filter_by,
            "sort_by": raw.sort_by,
        }
        if any(getattr(state, key) != value for key, value in changes.items()):
            changes["page"] = 1
        self.store.update(**changes)
        return self._latest_task

    def set_mode(self, mode: FilterMode) -> None:
        """Switch authoring mode without losing either draft."""
        with self._batched():
            state = self.state
            if mode is FilterMode.RAW and not state.drafts.is_raw:
                self.coordinator.flush(TEXT_QUERY_CHANNEL)
                state = self.state
                compiled = self.compiled_filter
                drafts = state.drafts.enter_raw(
                    text=state.text,
                    query_by_fields=state.query_by_fields,
                    filter_by=compiled,
                    sort_by=state.sort_by,
                )
                self.store.update(drafts=drafts, applied_raw_filter=compiled)
            elif mode is FilterMode.STRUCTURED and state.drafts.is_raw:
                self.coordinator.cancel(RAW_FILTER_CHANNEL)
                before = self.active_filter
                drafts = state.drafts.leave_raw()
                changes: Dict[str, Any] = {"drafts": drafts}
                if self.compiler.compile(drafts.structured) != before:
                    changes["page"] = 1
                self.store.update(**changes)

    def set_sort_field(self, sort_by: str) -> None:
        """Set ``field:asc`` / ``field:desc``; empty restores the server default."""
        if sort_by == self.state.sort_by:
            return
        self.store.update(sort_by=sort_by, page=1)

    def set_query_by_fields(self, fields: Sequence[str]) -> None:
        fields = tuple(fields)
        if fields == self.state.query_by_fields:
            return
        self.store.update(query_by_fields=fields, page=1)

    def set_facet_by(self, fields: Sequence[str]) -> None:
        self.store.update(facet_by=tuple(fields))

    def set_page(self, page: int) -> None:
        """Go to ``page``, clamped to the known page count; no-op with one page or less."""
        target = self.pagination.go_to(page)
        if target != self.state.page:
            self.store.update(page=target)

    def first_page(self) -> None:
        self.set_page(self.pagination.first())

    def previous_page(self) -> None:
        self.set_page(self.pagination.previous())

    def next_page(self) -> None:
        self.set_page(self.pagination.next())

    def last_page(self) -> None:
        self.set_page(self.pagination.last())

    def set_per_page(self, per_page: int) -> None:
        if per_page <= 0:
            raise ValueError(f"per_page must be > 0, got {per_page}")
        if per_page == self.state.per_page and self.state.page == 1:
            return
        self.store.update(per_page=per_page, page=1)

    def refresh(self) -> Optional[asyncio.Task]:
        """Re-dispatch the current request even if nothing changed."""
        self._last_request = None
        self._maybe_dispatch()
        return self._latest_task

    # ------------------------------------------------------------------
    # Document mutations
    # ------------------------------------------------------------------

    def _mutation_target(self) -> str:
        name = self.state.index_name
        if not name:
            raise QueryValidationError("Select an index first")
        return self.catalog.resolver.resolve_to_index(name)

    async def _after_mutation(self) -> None:
        try:
            await self.reload_catalog()
        except SearchException as e:
            logger.warning(f"Catalog reload after document mutation failed: {e.message}: {e.cause}")
        finally:
            task = self.refresh()
            if task is not None:
                await asyncio.gather(task, return_exceptions=True)

    async def create_document(self, document: Dict[str, Any]) -> Dict[str, Any]:
        created = await self.backend.create_document(self._mutation_target(), document)
        await self._after_mutation()
        return created

    async def update_document(self, document_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        updated = await self.backend.update_document(self._mutation_target(), document_id, document)
        await self._after_mutation()
        return updated

    async def delete_document(self, document_id: str) -> Dict[str, Any]:
        deleted = await self.backend.delete_document(self._mutation_target(), document_id)
        await self._after_mutation()
        return deleted

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    @contextmanager
    def _batched(self) -> Iterator[None]:
        """Coalesce every snapshot published inside the block into one dispatch."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self._dirty = False
                self._maybe_dispatch()

    def _on_state_change(self, previous: SearchState, current: SearchState) -> None:
        if self._batch_depth:
            self._dirty = True
            return
        self._maybe_dispatch()

    def _maybe_dispatch(self) -> None:
        request = self.request_for(self.state)
        if request == self._last_request:
            return
        self._dispatch(request)

    def _dispatch(self, request: SearchRequest) -> Optional[asyncio.Task]:
        self._last_request = request

        try:
            self.executor.validate(request)
        except QueryValidationError as e:
            self._skip_dispatch(validation_message=e.message)
            return None

        if not self.backend.ready:
            error = BackendNotReadyError(self.backend.last_error or "No active connection")
            self._skip_dispatch(error=error.to_response())
            return None

        if self.settings.cancel_superseded:
            self._cancel_in_flight()

        self._set_results(self._results.evolve(is_loading=True, validation_message=None))
        task = asyncio.get_running_loop().create_task(self._run(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._latest_task = task
        return task

    def _skip_dispatch(self, **changes: Any) -> None:
        # Anything still in flight must not land after the skip.
        self.coordinator.generations.mint()
        if self.settings.cancel_superseded:
            self._cancel_in_flight()
        self._latest_task = None
        self._set_results(self._results.evolve(is_loading=False, **changes))

    async def _run(self, request: SearchRequest) -> Optional[QueryOutcome]:
        try:
            outcome = await self.executor.execute(request)
        except SearchException as e:
            if self._latest_task is asyncio.current_task():
                self._set_results(self._results.evolve(is_loading=False, error=e.to_response()))
            return None

        if outcome is None:
            return None

        self._apply_outcome(outcome)
        return outcome

    def _apply_outcome(self, outcome: QueryOutcome) -> None:
        if not outcome.ok:
            # Prior results stay visible underneath the error.
            self._set_results(
                self._results.evolve(
                    is_loading=False,
                    error=outcome.error.to_response(),
                    generation=outcome.generation,
                )
            )
            return

        response = outcome.response
        request = outcome.request
        reconciler = ResultReconciler(self.catalog.schema_for(request.index_name))
        self._set_results(
            CurrentResults(
                index_name=request.index_name,
                found=response.found,
                hits=list(response.hits),
                rendered=reconciler.render(response),
                elapsed_ms=response.elapsed_ms,
                is_loading=False,
                error=None,
                validation_message=None,
                page=request.page,
                per_page=request.per_page,
                total_pages=total_pages(response.found, request.per_page),
                generation=outcome.generation,
            )
        )

    def _set_results(self, results: CurrentResults) -> None:
        self._results = results
        for listener in list(self._results_listeners):
            listener(results)

    def _cancel_in_flight(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    async def wait_idle(self) -> None:
        """Wait until no dispatched search is still running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel timers and in-flight searches."""
        self.coordinator.cancel_all()
        self._cancel_in_flight()
        await self.wait_idle()
