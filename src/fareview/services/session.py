# src/fareview/services/session.py

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from fareview.core.errors import FetchError, MalformedOfferError
from fareview.core.filters import apply_filters, default_filters, filter_options
from fareview.core.filters import has_active_filters as filters_active
from fareview.core.models import FilterState, ProcessedFlight, ResultsView, SearchParams
from fareview.core.normalizer import normalize_offers
from fareview.core.price_trend import aggregate
from fareview.core.query_string import from_query_string, to_query_string
from fareview.core.sorting import SORT_DIRECTIONS, SORT_KEYS, sort_flights, toggle_sort
from fareview.engine import assemble_view
from fareview.services.offer_cache import OfferCache
from fareview.services.pagination import PageWindow, Paginator
from fareview.services.store import InMemoryStore, PersistedStore

logger = logging.getLogger(__name__)

SEARCH_PARAMS_KEY = "flight_search_params"


class SessionController:
    """
    Owns the interactive state of one search session (search params, filters,
    sort, page index) and turns state changes into a ResultsView.

    Derived results are memoized by a key built from their inputs and are
    dropped explicitly by the dispatch method that changed an input.
    """

    def __init__(
        self,
        cache: OfferCache,
        store: Optional[PersistedStore] = None,
        page_size: int = 10,
        on_malformed: str = "drop",
    ):
        self.cache = cache
        self.store = store or InMemoryStore()
        self.on_malformed = on_malformed

        self.params: Optional[SearchParams] = None
        self.flights: List[ProcessedFlight] = []
        self.carriers: Dict[str, str] = {}
        self.rejected: List[MalformedOfferError] = []
        self.error: Optional[FetchError] = None
        self.is_loading = False

        self.filters = FilterState()
        self._defaults = FilterState()
        self.sort_field = "price"
        self.sort_direction = "asc"
        self.window = PageWindow(page_size=page_size)
        self.paginator = Paginator()

        self._current_key: Optional[Tuple[Any, ...]] = None
        self._memo: Dict[str, Tuple[Any, Any]] = {}

        stored = self.store.load(SEARCH_PARAMS_KEY)
        if stored:
            self.params = from_query_string(stored)

    # ------------------------------------------------------------------
    # derived-result memo
    # ------------------------------------------------------------------

    def _derived(self, name: str, inputs: Any, compute: Callable[[], Any]) -> Any:
        cached = self._memo.get(name)
        if cached is not None and cached[0] == inputs:
            return cached[1]
        value = compute()
        self._memo[name] = (inputs, value)
        return value

    def _invalidate(self, *names: str) -> None:
        for name in names or list(self._memo):
            self._memo.pop(name, None)
        if not names or "ordered" in names:
            self.paginator.invalidate()

    # ------------------------------------------------------------------
    # search
    # ------------------------------------------------------------------

    async def search(self, params: SearchParams) -> bool:
        """
        Fetch (or reuse) the batch for `params` and make it current.

        Returns False when the result was discarded because the search key
        changed while the fetch was in flight, or when the fetch failed
        (see `error`).
        """
        params.validate()
        key = params.cache_key()
        key_changed = key != self._current_key

        self.params = params
        self._current_key = key
        self.store.save(SEARCH_PARAMS_KEY, to_query_string(params))
        if key_changed:
            self.window.page = 1

        self.error = None
        self.is_loading = True
        try:
            response = await self.cache.fetch(params)
        except FetchError as e:
            if key != self._current_key:
                logger.debug("Ignoring failure of stale search %s", key)
                return False
            logger.error("%s", e)
            self.is_loading = False
            self.error = e
            self._set_flights([], {}, reset_filters=True)
            return False

        if key != self._current_key:
            logger.debug("Discarding stale result for %s", key)
            return False

        self.is_loading = False
        result = normalize_offers(response.offers, response.carriers, on_error=self.on_malformed)
        self.rejected = result.rejected
        self._set_flights(result.flights, response.carriers, reset_filters=key_changed or not self.flights)
        return True

    def prefetch(self, params: SearchParams) -> "asyncio.Task[None]":
        """Schedule an advisory warm-up of another search key."""
        return asyncio.ensure_future(self.cache.warm(params))

    def _set_flights(self, flights: List[ProcessedFlight], carriers: Dict[str, str], reset_filters: bool) -> None:
        self.flights = flights
        self.carriers = dict(carriers)
        self._defaults = default_filters(flights)
        if reset_filters:
            self.filters = replace(self._defaults)
        self._invalidate()

    # ------------------------------------------------------------------
    # filters / sort / page
    # ------------------------------------------------------------------

    def update_filter(self, name: str, value: Any) -> FilterState:
        """
        Replace one filter dimension. Raises InvalidFilterError (state left
        unchanged) when the new value violates the filter's bounds.
        """
        if name not in FilterState.__dataclass_fields__:
            raise KeyError(f"unknown filter: {name}")
        if name in ("stops", "airlines"):
            value = frozenset(value)
        else:
            value = tuple(value)
        candidate = replace(self.filters, **{name: value})
        candidate.validate()
        if candidate == self.filters:
            return self.filters
        self.filters = candidate
        self._invalidate("filtered", "ordered", "trend")
        return self.filters

    def reset_filters(self) -> FilterState:
        self.filters = replace(self._defaults)
        self._invalidate("filtered", "ordered", "trend")
        return self.filters

    @property
    def has_active_filters(self) -> bool:
        return filters_active(self.filters, self._defaults)

    def set_sort(self, field: str, direction: str = "asc") -> None:
        if field not in SORT_KEYS or direction not in SORT_DIRECTIONS:
            raise ValueError(f"unknown sort: {field!r} {direction!r}")
        self.sort_field, self.sort_direction = field, direction
        self._invalidate("ordered")

    def toggle_sort(self, field: str) -> Tuple[str, str]:
        self.sort_field, self.sort_direction = toggle_sort(self.sort_field, self.sort_direction, field)
        self._invalidate("ordered")
        return self.sort_field, self.sort_direction

    def go_to_page(self, page: int) -> int:
        self.window.page = int(page)
        return self.window.clamp(len(self._ordered()))

    def next_page(self) -> int:
        return self.go_to_page(self.window.page + 1)

    def prev_page(self) -> int:
        return self.go_to_page(self.window.page - 1)

    # ------------------------------------------------------------------
    # view
    # ------------------------------------------------------------------

    def _filtered(self) -> List[ProcessedFlight]:
        return self._derived(
            "filtered",
            (self._current_key, self.filters.fingerprint()),
            lambda: apply_filters(self.flights, self.filters),
        )

    def _view_key(self) -> Tuple[Any, ...]:
        return (self._current_key, self.filters.fingerprint(), self.sort_field, self.sort_direction)

    def _ordered(self) -> List[ProcessedFlight]:
        return self._derived(
            "ordered",
            self._view_key(),
            lambda: sort_flights(self._filtered(), self.sort_field, self.sort_direction),
        )

    def view(self) -> ResultsView:
        filtered = self._filtered()
        ordered = self._ordered()
        trend = self._derived(
            "trend",
            (self._current_key, self.filters.fingerprint()),
            lambda: aggregate(self.flights, filtered),
        )
        options = self._derived("options", self._current_key, lambda: filter_options(self.flights))

        self.window.clamp(len(ordered))
        view_key = self._view_key()
        page_flights = self.paginator.page(ordered, view_key, self.window)
        self.paginator.warm_next(ordered, view_key, self.window)

        return assemble_view(
            ordered=ordered,
            page_flights=page_flights,
            trend=trend,
            options=options,
            active=self.has_active_filters,
            window=self.window,
            carriers=self.carriers,
        )
