"""Page arithmetic for search results."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


def total_pages(found: int, per_page: int) -> int:
    """Number of pages needed for ``found`` hits.

    >>> total_pages(101, 25)
    5
    >>> total_pages(0, 25)
    0
    """
    if per_page <= 0:
        raise ValueError(f"per_page must be > 0, got {per_page}")
    if found <= 0:
        return 0
    return math.ceil(found / per_page)


@dataclass(frozen=True)
class PaginationController:
    """Navigation over the pages of the latest response.

    Every action returns the page to show next. Targets are clamped to
    ``[1, total_pages]`` and every action is a no-op (returns the current
    page) while there is at most one page.
    """

    found: int = 0
    per_page: int = 25
    page: int = 1

    @property
    def total_pages(self) -> int:
        return total_pages(self.found, self.per_page)

    @property
    def can_navigate(self) -> bool:
        return self.total_pages > 1

    @property
    def has_previous(self) -> bool:
        return self.can_navigate and self.page > 1

    @property
    def has_next(self) -> bool:
        return self.can_navigate and self.page < self.total_pages

    def go_to(self, page: int) -> int:
        if not self.can_navigate:
            return self.page
        return max(1, min(self.total_pages, page))

    def first(self) -> int:
        return self.go_to(1)

    def previous(self) -> int:
        return self.go_to(self.page - 1)

    def next(self) -> int:
        return self.go_to(self.page + 1)

    def last(self) -> int:
        return self.go_to(self.total_pages)

    def window(self) -> Tuple[int, int]:
        """1-based ``(start, end)`` of the items on the current page; ``(0, 0)`` when empty."""
        if self.found <= 0:
            return (0, 0)
        start = (self.page - 1) * self.per_page + 1
        end = min(self.page * self.per_page, self.found)
        return (start, end)
