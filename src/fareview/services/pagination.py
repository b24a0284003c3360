# src/fareview/services/pagination.py

from __future__ import annotations

import logging
import math
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Hashable, List, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PageWindow:
    """1-based page index over a filtered+sorted collection."""

    page: int = 1
    page_size: int = 10

    def __post_init__(self) -> None:
        if int(self.page_size) < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")

    def total_pages(self, count: int) -> int:
        return math.ceil(count / self.page_size)

    def clamp(self, count: int) -> int:
        """Pull the index back into [1, max(1, total_pages)]; never resets to 1 otherwise."""
        upper = max(1, self.total_pages(count))
        self.page = min(max(1, int(self.page)), upper)
        return self.page

    def bounds(self, page: Optional[int] = None) -> Tuple[int, int]:
        p = self.page if page is None else page
        start = (p - 1) * self.page_size
        return start, start + self.page_size

    def slice(self, items: Sequence[T], page: Optional[int] = None) -> List[T]:
        start, end = self.bounds(page)
        return list(items[start:end])

    def has_next_page(self, count: int) -> bool:
        return self.page < self.total_pages(count)


class Paginator:
    """
    Page slices memoized by (view key, page).

    The view key is whatever identifies the filtered+sorted collection
    (search key, filter fingerprint, sort). Entering a page warms page+1.
    """

    def __init__(self, max_entries: int = 64):
        self.max_entries = max_entries
        self._memo: "OrderedDict[Tuple[Hashable, int, int], List[Any]]" = OrderedDict()

    def _store(self, key: Tuple[Hashable, int, int], value: List[Any]) -> None:
        self._memo[key] = value
        self._memo.move_to_end(key)
        while len(self._memo) > self.max_entries:
            self._memo.popitem(last=False)

    def page(self, items: Sequence[T], view_key: Hashable, window: PageWindow, page: Optional[int] = None) -> List[T]:
        p = window.page if page is None else page
        key = (view_key, window.page_size, p)
        cached = self._memo.get(key)
        if cached is not None:
            self._memo.move_to_end(key)
            return cached
        value = window.slice(items, p)
        self._store(key, value)
        return value

    def is_warm(self, view_key: Hashable, window: PageWindow, page: int) -> bool:
        return (view_key, window.page_size, page) in self._memo

    def warm_next(self, items: Sequence[T], view_key: Hashable, window: PageWindow) -> None:
        """Advisory: precompute page+1. Errors are logged, never raised."""
        nxt = window.page + 1
        try:
            if nxt <= window.total_pages(len(items)):
                self.page(items, view_key, window, nxt)
        except Exception as e:
            logger.warning("Could not warm page %s: %s", nxt, e)

    def invalidate(self) -> None:
        self._memo.clear()

    def __len__(self) -> int:
        return len(self._memo)
