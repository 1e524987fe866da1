"""Test configuration for pytest."""

from __future__ import annotations

import pytest

from index_browser.search.models import Alias
from index_browser.search.utils.query_logger import set_debug_mode
from tests.helpers import FakeBackend, products_schema


@pytest.fixture(autouse=True)
def _reset_query_debug_mode():
    """Verbose query logging never leaks from one test into the next."""
    set_debug_mode(False)
    yield
    set_debug_mode(False)


@pytest.fixture(autouse=True)
def _clear_connection_env(monkeypatch):
    for name in (
        "TYPESENSE_URL",
        "TYPESENSE_API_KEY",
        "TYPESENSE_TIMEOUT",
        "INDEX_BROWSER_PAGE_SIZE",
        "INDEX_BROWSER_DEBOUNCE_MS",
        "INDEX_BROWSER_CANCEL_SUPERSEDED",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def schema():
    return products_schema()


@pytest.fixture
def backend(schema) -> FakeBackend:
    """Backend with one index and an alias ``products`` pointing at it."""
    return FakeBackend(schemas=[schema], aliases=[Alias("products", schema.name)])
