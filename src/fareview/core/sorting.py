# src/fareview/core/sorting.py

from __future__ import annotations

from typing import Callable, Dict, List, Tuple, Any

from fareview.core.models import ProcessedFlight


SORT_KEYS: Dict[str, Callable[[ProcessedFlight], Any]] = {
    "price": lambda f: f.price,
    "duration": lambda f: f.total_duration,
    "departure": lambda f: f.departure_time,
}

SORT_DIRECTIONS = ("asc", "desc")


def sort_flights(
    flights: List[ProcessedFlight],
    field: str = "price",
    direction: str = "asc",
) -> List[ProcessedFlight]:
    """
    Return a new list ordered by `field`.

    No secondary key: flights with equal keys keep their input order in both
    directions (sorted() is stable, and reverse=True preserves that).
    """
    if field not in SORT_KEYS:
        raise ValueError(f"unknown sort field: {field!r}")
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"unknown sort direction: {direction!r}")

    return sorted(flights, key=SORT_KEYS[field], reverse=(direction == "desc"))


def toggle_sort(current_field: str, current_direction: str, field: str) -> Tuple[str, str]:
    """Same field flips the direction; a new field starts ascending."""
    if field not in SORT_KEYS:
        raise ValueError(f"unknown sort field: {field!r}")
    if field == current_field:
        return field, "desc" if current_direction == "asc" else "asc"
    return field, "asc"
