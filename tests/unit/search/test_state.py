"""Tests for state snapshots and the results read model."""

from __future__ import annotations

import dataclasses

import pytest

from index_browser.search.state import CurrentResults, SearchState, StateStore


class TestStateStore:
    def test_update_publishes_previous_and_current(self):
        store = StateStore()
        seen = []
        store.subscribe(lambda previous, current: seen.append((previous.text, current.text)))

        store.update(text="shoe")

        assert seen == [("", "shoe")]
        assert store.state.text == "shoe"

    def test_unchanged_update_is_silent(self):
        store = StateStore(SearchState(text="shoe"))
        seen = []
        store.subscribe(lambda previous, current: seen.append(current))

        store.update(text="shoe")

        assert seen == []

    def test_unsubscribe(self):
        store = StateStore()
        seen = []
        unsubscribe = store.subscribe(lambda previous, current: seen.append(current))

        unsubscribe()
        store.update(page=2)

        assert seen == []

    def test_snapshots_are_immutable(self):
        state = SearchState()

        with pytest.raises(dataclasses.FrozenInstanceError):
            state.page = 3

    def test_earlier_snapshot_is_not_modified(self):
        store = StateStore()
        first = store.state

        store.update(index_name="products", page=2)

        assert first.index_name is None
        assert first.page == 1


class TestCurrentResults:
    def test_defaults(self):
        results = CurrentResults()

        assert results.found == 0
        assert results.hits == []
        assert not results.is_loading
        assert results["error"] is None

    def test_evolve_returns_new_model(self):
        results = CurrentResults()

        loading = results.evolve(is_loading=True)

        assert loading.is_loading
        assert not results.is_loading
