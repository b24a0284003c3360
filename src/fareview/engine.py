# src/fareview/engine.py

from __future__ import annotations

from typing import Dict, List, Optional

from fareview.core.filters import apply_filters, default_filters, filter_options, has_active_filters
from fareview.core.models import (
    FilterOptions,
    FilterState,
    PriceTrend,
    ProcessedFlight,
    ResultsView,
)
from fareview.core.price_trend import aggregate
from fareview.core.sorting import sort_flights
from fareview.services.pagination import PageWindow


def pick_cheapest(flights: List[ProcessedFlight]) -> Optional[ProcessedFlight]:
    """Cheapest flight; the first one wins a tie."""
    if not flights:
        return None
    return min(flights, key=lambda f: f.price)


def assemble_view(
    ordered: List[ProcessedFlight],
    page_flights: List[ProcessedFlight],
    trend: PriceTrend,
    options: FilterOptions,
    active: bool,
    window: PageWindow,
    carriers: Optional[Dict[str, str]] = None,
) -> ResultsView:
    """Package derived results into the display-layer contract."""
    cheapest = pick_cheapest(ordered)
    return ResultsView(
        page_flights=page_flights,
        total_filtered_count=len(ordered),
        price_trend=trend,
        filter_options=options,
        has_active_filters=active,
        current_page=window.page,
        total_pages=window.total_pages(len(ordered)),
        has_next_page=window.has_next_page(len(ordered)),
        cheapest_flight_id=cheapest.id if cheapest else None,
        carriers=dict(carriers or {}),
    )


def run_pipeline(
    flights: List[ProcessedFlight],
    filters: Optional[FilterState] = None,
    sort_field: str = "price",
    sort_direction: str = "asc",
    window: Optional[PageWindow] = None,
    carriers: Optional[Dict[str, str]] = None,
) -> ResultsView:
    """
    One-shot, unmemoized derivation:
    normalized flights -> filter -> sort -> page, plus the price trend over
    the full filtered set. `window.page` is clamped in place.
    """
    defaults = default_filters(flights)
    filters = filters if filters is not None else defaults
    window = window or PageWindow()

    filtered = apply_filters(flights, filters)
    ordered = sort_flights(filtered, sort_field, sort_direction)
    window.clamp(len(ordered))

    return assemble_view(
        ordered=ordered,
        page_flights=window.slice(ordered),
        trend=aggregate(flights, filtered),
        options=filter_options(flights),
        active=has_active_filters(filters, defaults),
        window=window,
        carriers=carriers,
    )
