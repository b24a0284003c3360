# src/fareview/core/models.py

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Optional, List, Dict, Any, Tuple, FrozenSet

from fareview.core.errors import InvalidFilterError, InvalidSearchParamsError


TRAVEL_CLASSES = ("ECONOMY", "PREMIUM_ECONOMY", "BUSINESS", "FIRST")

STOP_BUCKETS = ("0", "1", "2+")

# Fallback filter bounds when a search returned nothing
DEFAULT_PRICE_RANGE: Tuple[int, int] = (0, 1000)
DEFAULT_DURATION_RANGE: Tuple[int, int] = (0, 1440)
FULL_HOUR_RANGE: Tuple[int, int] = (0, 23)


@dataclass(frozen=True)
class SearchParams:
    origin: str
    destination: str
    departure_date: date
    return_date: Optional[date] = None
    adults: int = 1
    children: Optional[int] = None
    infants: Optional[int] = None
    travel_class: Optional[str] = None  # "ECONOMY" | "PREMIUM_ECONOMY" | ...
    non_stop: Optional[bool] = None
    currency_code: Optional[str] = None
    max_results: Optional[int] = None  # bounds the fetch, not part of the key

    def validate(self) -> None:
        if not (self.origin or "").strip() or not (self.destination or "").strip():
            raise InvalidSearchParamsError("origin and destination are required")
        if int(self.adults) < 1:
            raise InvalidSearchParamsError("at least one adult is required")
        if self.travel_class and self.travel_class not in TRAVEL_CLASSES:
            raise InvalidSearchParamsError(
                f"unknown travel class: {self.travel_class}")
        if self.return_date and self.return_date < self.departure_date:
            raise InvalidSearchParamsError(
                "return date cannot be before departure date")

    def cache_key(self) -> Tuple[Any, ...]:
        """
        Identity of one fetch/cache entry.
        Every field except max_results, which only bounds the fetch size.
        """
        d = asdict(self)
        d.pop("max_results", None)
        return tuple(sorted(d.items()))


@dataclass(frozen=True)
class Segment:
    """A single flight leg."""

    origin: str
    destination: str
    dep_at: Optional[datetime] = None
    arr_at: Optional[datetime] = None
    carrier_code: Optional[str] = None  # e.g. "AA"
    carrier_name: Optional[str] = None  # e.g. "American Airlines"
    flight_number: Optional[str] = None  # e.g. "1234"
    aircraft_code: Optional[str] = None


@dataclass(frozen=True)
class Itinerary:
    """A collection of segments representing one direction of travel."""

    direction: str  # "OUT" | "RETURN"
    segments: Tuple[Segment, ...] = ()
    duration_minutes: int = 0


@dataclass(frozen=True)
class ProcessedFlight:
    """
    One normalized offer with the derived fields every downstream stage reads.

    `raw` is the provider payload, kept for display only.
    """

    id: str
    price: float
    currency: str
    total_duration: int  # minutes, summed over itineraries
    total_stops: int  # first itinerary only
    main_airline: str
    departure_time: datetime
    arrival_time: datetime
    itineraries: Tuple[Itinerary, ...] = ()
    airline_name: Optional[str] = None
    raw: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    @property
    def stop_bucket(self) -> str:
        if self.total_stops == 0:
            return "0"
        if self.total_stops == 1:
            return "1"
        return "2+"

    @property
    def departure_hour(self) -> int:
        return self.departure_time.hour

    @property
    def arrival_hour(self) -> int:
        return self.arrival_time.hour


def _check_range(name: str, rng: Tuple[float, float]) -> None:
    lo, hi = rng
    if lo > hi:
        raise InvalidFilterError(f"{name}: min {lo} is greater than max {hi}")


def _check_hours(name: str, rng: Tuple[int, int]) -> None:
    _check_range(name, rng)
    lo, hi = rng
    if lo < 0 or hi > 23:
        raise InvalidFilterError(f"{name}: hours must be within 0..23, got {rng}")


@dataclass
class FilterState:
    """
    Interactive filter selection. Ranges are (min, max), both inclusive.
    Empty `stops` / `airlines` impose no constraint.
    """

    price_range: Tuple[float, float] = DEFAULT_PRICE_RANGE
    stops: FrozenSet[str] = frozenset()
    airlines: FrozenSet[str] = frozenset()
    departure_time_range: Tuple[int, int] = FULL_HOUR_RANGE
    arrival_time_range: Tuple[int, int] = FULL_HOUR_RANGE
    duration: Tuple[int, int] = DEFAULT_DURATION_RANGE

    def validate(self) -> None:
        _check_range("price_range", self.price_range)
        _check_range("duration", self.duration)
        _check_hours("departure_time_range", self.departure_time_range)
        _check_hours("arrival_time_range", self.arrival_time_range)
        unknown = set(self.stops) - set(STOP_BUCKETS)
        if unknown:
            raise InvalidFilterError(f"unknown stop buckets: {sorted(unknown)}")

    def fingerprint(self) -> Tuple[Any, ...]:
        """Hashable snapshot, used to key derived results."""
        return (
            tuple(self.price_range),
            tuple(sorted(self.stops)),
            tuple(sorted(self.airlines)),
            tuple(self.departure_time_range),
            tuple(self.arrival_time_range),
            tuple(self.duration),
        )


@dataclass(frozen=True)
class FilterOptions:
    airlines: List[str] = field(default_factory=list)
    price_range: Tuple[float, float] = DEFAULT_PRICE_RANGE
    duration_range: Tuple[int, int] = DEFAULT_DURATION_RANGE


@dataclass(frozen=True)
class PricePoint:
    price: float
    date: str  # departure date, YYYY-MM-DD
    airline: str
    stops: int


@dataclass(frozen=True)
class PriceBucket:
    price: int  # bucket start
    all_count: int
    filtered_count: int


@dataclass(frozen=True)
class PriceTrend:
    current: Tuple[PricePoint, ...] = ()
    filtered: Tuple[PricePoint, ...] = ()
    buckets: Tuple[PriceBucket, ...] = ()
    lowest: float = 0.0
    highest: float = 0.0
    average: float = 0.0

    @property
    def savings_percent(self) -> int:
        """How far the cheapest filtered fare sits below the filtered average."""
        if self.lowest > 0 and self.average > 0:
            return int(round((self.average - self.lowest) / self.average * 100))
        return 0


@dataclass(frozen=True)
class SearchResponse:
    """What the fetch collaborator hands back for one search."""

    offers: List[Dict[str, Any]] = field(default_factory=list)
    carriers: Dict[str, str] = field(default_factory=dict)
    meta: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class ResultsView:
    """Everything the display layer reads for one render."""

    page_flights: List[ProcessedFlight]
    total_filtered_count: int
    price_trend: PriceTrend
    filter_options: FilterOptions
    has_active_filters: bool
    current_page: int
    total_pages: int
    has_next_page: bool
    cheapest_flight_id: Optional[str] = None
    carriers: Dict[str, str] = field(default_factory=dict)
