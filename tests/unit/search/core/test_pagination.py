"""Tests for page arithmetic and navigation."""

from __future__ import annotations

import pytest

from index_browser.search.core.pagination import PaginationController, total_pages


class TestTotalPages:
    @pytest.mark.parametrize(
        "found, per_page, expected",
        [
            (101, 25, 5),
            (100, 25, 4),
            (1, 25, 1),
            (0, 25, 0),
        ],
    )
    def test_ceiling_division(self, found, per_page, expected):
        assert total_pages(found, per_page) == expected

    def test_rejects_non_positive_page_size(self):
        with pytest.raises(ValueError):
            total_pages(10, 0)


class TestPaginationController:
    def test_next_at_last_page_is_noop(self):
        pager = PaginationController(found=101, per_page=25, page=5)

        assert pager.next() == 5
        assert not pager.has_next

    def test_previous_at_first_page_is_noop(self):
        pager = PaginationController(found=101, per_page=25, page=1)

        assert pager.previous() == 1
        assert not pager.has_previous

    def test_navigation(self):
        pager = PaginationController(found=101, per_page=25, page=3)

        assert pager.first() == 1
        assert pager.previous() == 2
        assert pager.next() == 4
        assert pager.last() == 5

    def test_go_to_clamps(self):
        pager = PaginationController(found=101, per_page=25, page=2)

        assert pager.go_to(99) == 5
        assert pager.go_to(-3) == 1

    def test_single_page_disables_navigation(self):
        pager = PaginationController(found=10, per_page=25, page=1)

        assert not pager.can_navigate
        assert pager.go_to(3) == 1
        assert pager.last() == 1

    def test_no_results(self):
        pager = PaginationController(found=0, per_page=25, page=1)

        assert pager.total_pages == 0
        assert pager.window() == (0, 0)

    def test_window(self):
        assert PaginationController(found=101, per_page=25, page=1).window() == (1, 25)
        assert PaginationController(found=101, per_page=25, page=5).window() == (101, 101)
