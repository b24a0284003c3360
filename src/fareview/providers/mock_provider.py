# src/fareview/providers/mock_provider.py

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple

from fareview.core.models import SearchParams, SearchResponse
from fareview.providers.base import FlightSearchProvider


CARRIERS = {
    "AA": "American Airlines",
    "DL": "Delta Air Lines",
    "UA": "United Airlines",
    "B6": "JetBlue Airways",
    "NK": "Spirit Airlines",
}

HUBS = ("ATL", "ORD", "DFW", "CLT")

# (carrier, departure hour, stops, leg minutes, base price)
_TEMPLATES: List[Tuple[str, int, int, int, float]] = [
    ("AA", 6, 0, 215, 289.0),
    ("DL", 8, 1, 150, 244.5),
    ("UA", 11, 1, 165, 231.0),
    ("B6", 14, 0, 220, 312.0),
    ("NK", 17, 2, 120, 158.0),
    ("AA", 19, 1, 140, 265.0),
    ("DL", 21, 0, 210, 349.0),
    ("UA", 23, 2, 110, 176.0),
]


def _iso_duration(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"PT{hours}H{mins}M" if mins else f"PT{hours}H"


def _build_itinerary(
    origin: str,
    destination: str,
    day: date,
    dep_hour: int,
    stops: int,
    leg_minutes: int,
    carrier: str,
    flight_no: int,
) -> Dict[str, Any]:
    """Chain stops+1 segments through hubs with a 60 minute connection each."""
    airports = [origin] + list(HUBS[:stops]) + [destination]
    at = datetime.combine(day, time(hour=dep_hour))
    start = at

    segments: List[Dict[str, Any]] = []
    for i in range(len(airports) - 1):
        arr = at + timedelta(minutes=leg_minutes)
        segments.append(
            {
                "departure": {"iataCode": airports[i], "at": at.isoformat()},
                "arrival": {"iataCode": airports[i + 1], "at": arr.isoformat()},
                "carrierCode": carrier,
                "number": str(flight_no + i),
                "aircraft": {"code": "321"},
                "numberOfStops": 0,
            }
        )
        at = arr + timedelta(minutes=60)

    total = int((arr - start).total_seconds() // 60)
    return {"duration": _iso_duration(total), "segments": segments}


def generate_dummy_offers(params: SearchParams, max_results: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Simulate an Amadeus flight-offers payload for a search.

    Deterministic: the same params always produce the same offers.
    Respects return_date (adds a return itinerary), non_stop and the
    passenger count (price scales with adults + children).
    """
    travellers = max(1, int(params.adults)) + int(params.children or 0)
    currency = params.currency_code or "USD"

    offers: List[Dict[str, Any]] = []
    for idx, (carrier, dep_hour, stops, leg_minutes, base_price) in enumerate(_TEMPLATES):
        if params.non_stop and stops > 0:
            continue

        itineraries = [
            _build_itinerary(
                params.origin, params.destination, params.departure_date,
                dep_hour, stops, leg_minutes, carrier, 100 + idx * 10,
            )
        ]
        if params.return_date:
            itineraries.append(
                _build_itinerary(
                    params.destination, params.origin, params.return_date,
                    (dep_hour + 3) % 24, stops, leg_minutes, carrier, 500 + idx * 10,
                )
            )

        total = base_price * travellers * (1.8 if params.return_date else 1.0)
        offers.append(
            {
                "type": "flight-offer",
                "id": str(idx + 1),
                "source": "GDS",
                "itineraries": itineraries,
                "price": {
                    "currency": currency,
                    "total": f"{total:.2f}",
                    "grandTotal": f"{total:.2f}",
                },
                "validatingAirlineCodes": [carrier],
            }
        )

    if max_results is not None:
        offers = offers[: max(0, int(max_results))]
    return offers


class MockProvider(FlightSearchProvider):
    """
    Deterministic offline provider for dev/testing.
    Counts calls so callers can check fetch de-duplication.
    """

    def __init__(self) -> None:
        self.calls = 0

    def search(self, params: SearchParams, max_results: int) -> SearchResponse:
        self.calls += 1
        offers = generate_dummy_offers(params, max_results)
        used = {o["validatingAirlineCodes"][0] for o in offers}
        return SearchResponse(
            offers=offers,
            carriers={code: name for code, name in CARRIERS.items() if code in used},
            meta={"count": len(offers)},
        )
