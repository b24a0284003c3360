from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest

from fareview.core.normalizer import normalize


def make_raw_offer(
    offer_id: str = "1",
    price: float = 100.0,
    stops: int = 0,
    carrier: str = "AA",
    dep: str = "2026-03-01T08:00:00",
    leg_minutes: int = 120,
    currency: str = "USD",
    return_dep: Optional[str] = None,
) -> Dict[str, Any]:
    """Amadeus-shaped offer; legs are chained with a 60 minute connection."""

    def itinerary(start: str) -> Dict[str, Any]:
        at = datetime.fromisoformat(start)
        first = at
        segments = []
        for i in range(stops + 1):
            arr = at + timedelta(minutes=leg_minutes)
            segments.append(
                {
                    "departure": {"iataCode": f"A{i}", "at": at.isoformat()},
                    "arrival": {"iataCode": f"A{i + 1}", "at": arr.isoformat()},
                    "carrierCode": carrier,
                    "number": str(100 + i),
                }
            )
            at = arr + timedelta(minutes=60)
        total = int((arr - first).total_seconds() // 60)
        hours, minutes = divmod(total, 60)
        return {"duration": f"PT{hours}H{minutes}M", "segments": segments}

    itineraries = [itinerary(dep)]
    if return_dep:
        itineraries.append(itinerary(return_dep))

    return {
        "type": "flight-offer",
        "id": offer_id,
        "itineraries": itineraries,
        "price": {"currency": currency, "total": f"{price:.2f}", "grandTotal": f"{price:.2f}"},
        "validatingAirlineCodes": [carrier],
    }


def make_flight(**kwargs):
    return normalize(make_raw_offer(**kwargs))


@pytest.fixture
def raw_offer_factory():
    return make_raw_offer


@pytest.fixture
def flight_factory():
    return make_flight


@pytest.fixture
def three_flights() -> List:
    return [
        make_flight(offer_id="a", price=100, stops=0, carrier="AA", dep="2026-03-01T06:00:00"),
        make_flight(offer_id="b", price=250, stops=1, carrier="DL", dep="2026-03-01T12:00:00"),
        make_flight(offer_id="c", price=400, stops=2, carrier="UA", dep="2026-03-01T18:00:00"),
    ]
