# src/fareview/core/filters.py

from __future__ import annotations

import math
from typing import List, Tuple

from fareview.core.models import (
    DEFAULT_DURATION_RANGE,
    DEFAULT_PRICE_RANGE,
    FULL_HOUR_RANGE,
    FilterOptions,
    FilterState,
    ProcessedFlight,
)


def _in_range(value: float, rng: Tuple[float, float]) -> bool:
    return rng[0] <= value <= rng[1]


def get_price_range(flights: List[ProcessedFlight]) -> Tuple[int, int]:
    """Initial price filter bounds: (floor(min), ceil(max)) over the full set."""
    if not flights:
        return DEFAULT_PRICE_RANGE
    prices = [f.price for f in flights]
    return math.floor(min(prices)), math.ceil(max(prices))


def get_duration_range(flights: List[ProcessedFlight]) -> Tuple[int, int]:
    if not flights:
        return DEFAULT_DURATION_RANGE
    durations = [f.total_duration for f in flights]
    return min(durations), max(durations)


def get_unique_airlines(flights: List[ProcessedFlight]) -> List[str]:
    return sorted({f.main_airline for f in flights})


def filter_options(flights: List[ProcessedFlight]) -> FilterOptions:
    return FilterOptions(
        airlines=get_unique_airlines(flights),
        price_range=get_price_range(flights),
        duration_range=get_duration_range(flights),
    )


def default_filters(flights: List[ProcessedFlight]) -> FilterState:
    """The no-op filter state for a search result."""
    return FilterState(
        price_range=get_price_range(flights),
        duration=get_duration_range(flights),
    )


def matches(flight: ProcessedFlight, filters: FilterState) -> bool:
    """
    AND across dimensions, OR within the stops / airlines selections.
    """
    if not _in_range(flight.price, filters.price_range):
        return False

    if filters.stops and flight.stop_bucket not in filters.stops:
        return False

    if filters.airlines and flight.main_airline not in filters.airlines:
        return False

    if not _in_range(flight.departure_hour, filters.departure_time_range):
        return False

    if not _in_range(flight.arrival_hour, filters.arrival_time_range):
        return False

    return _in_range(flight.total_duration, filters.duration)


def apply_filters(flights: List[ProcessedFlight], filters: FilterState) -> List[ProcessedFlight]:
    """Order-preserving subset of `flights` that satisfies every active dimension."""
    filters.validate()
    return [f for f in flights if matches(f, filters)]


def has_active_filters(filters: FilterState, defaults: FilterState) -> bool:
    return (
        bool(filters.stops)
        or bool(filters.airlines)
        or tuple(filters.price_range) != tuple(defaults.price_range)
        or tuple(filters.departure_time_range) != FULL_HOUR_RANGE
        or tuple(filters.arrival_time_range) != FULL_HOUR_RANGE
        or tuple(filters.duration) != tuple(defaults.duration)
    )
