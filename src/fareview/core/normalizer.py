# src/fareview/core/normalizer.py

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from fareview.core.errors import MalformedOfferError
from fareview.core.models import ProcessedFlight, Itinerary, Segment

logger = logging.getLogger(__name__)

ON_ERROR_POLICIES = ("drop", "raise")

_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?")


def parse_duration_minutes(duration: Optional[str]) -> int:
    """
    Parse durations like 'PT6H30M' into total minutes.
    Either component may be missing ('PT45M', 'PT2H').
    """
    if not duration or not isinstance(duration, str):
        raise ValueError(f"missing duration: {duration!r}")
    match = _DURATION_RE.fullmatch(duration.strip())
    if not match:
        raise ValueError(f"unparseable duration: {duration!r}")
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    return hours * 60 + minutes


def parse_timestamp(value: Optional[str]) -> datetime:
    """
    Parse Amadeus datetime strings like:
      - '2026-02-15T10:30:00'        (airport-local wall clock)
      - '2026-02-15T10:30:00Z'
      - '2026-02-15T10:30:00+00:00'

    The result is always naive: the wall-clock time as written, offset dropped.
    """
    if not value:
        raise ValueError("missing timestamp")
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {value!r}")
    return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)


def _require_dict(value: Any, what: str, offer_id: Optional[str], optional: bool = False) -> Dict[str, Any]:
    if value is None and optional:
        return {}
    if not isinstance(value, dict):
        raise MalformedOfferError(f"{what} must be an object, got {type(value).__name__}", offer_id)
    return value


def _build_segment(offer_id: str, seg: Any, carriers: Dict[str, str]) -> Segment:
    seg = _require_dict(seg, "segment", offer_id)
    dep = _require_dict(seg.get("departure"), "segment departure", offer_id)
    arr = _require_dict(seg.get("arrival"), "segment arrival", offer_id)

    carrier_code = seg.get("carrierCode")
    aircraft = _require_dict(seg.get("aircraft"), "segment aircraft", offer_id, optional=True)

    return Segment(
        origin=str(dep.get("iataCode", "")),
        destination=str(arr.get("iataCode", "")),
        dep_at=parse_timestamp(dep.get("at")),
        arr_at=parse_timestamp(arr.get("at")),
        carrier_code=str(carrier_code) if carrier_code else None,
        carrier_name=carriers.get(str(carrier_code)) if carrier_code else None,
        flight_number=str(seg["number"]) if seg.get("number") is not None else None,
        aircraft_code=str(aircraft["code"]) if aircraft.get("code") else None,
    )


def _build_itineraries(offer_id: str, raw: Dict[str, Any], carriers: Dict[str, str]) -> List[Itinerary]:
    itineraries_raw = raw.get("itineraries") or []
    if not isinstance(itineraries_raw, list):
        raise MalformedOfferError("itineraries must be a list", offer_id)
    if not itineraries_raw:
        raise MalformedOfferError("no itineraries", offer_id)

    out: List[Itinerary] = []
    for idx, it in enumerate(itineraries_raw):
        it = _require_dict(it, f"itinerary {idx}", offer_id)
        segments_raw = it.get("segments") or []
        if not isinstance(segments_raw, list):
            raise MalformedOfferError(f"itinerary {idx} segments must be a list", offer_id)
        if not segments_raw:
            raise MalformedOfferError(f"itinerary {idx} has no segments", offer_id)
        try:
            segments = tuple(_build_segment(offer_id, s, carriers) for s in segments_raw)
            duration = parse_duration_minutes(it.get("duration"))
        except MalformedOfferError:
            raise
        except (ValueError, TypeError) as e:
            raise MalformedOfferError(f"itinerary {idx}: {e}", offer_id) from e

        out.append(
            Itinerary(
                direction="OUT" if idx == 0 else "RETURN",
                segments=segments,
                duration_minutes=duration,
            )
        )
    return out


def _parse_price(offer_id: str, raw: Dict[str, Any]) -> Tuple[float, str]:
    """(amount, currency); the amount must be a finite number."""
    price = _require_dict(raw.get("price"), "price", offer_id)
    total = price.get("total")
    if total is None:
        total = price.get("grandTotal")
    if total is None:
        raise MalformedOfferError("no price", offer_id)
    try:
        amount = float(total)
    except (TypeError, ValueError) as e:
        raise MalformedOfferError(f"bad price {total!r}", offer_id) from e
    if not math.isfinite(amount):
        raise MalformedOfferError(f"bad price {total!r}", offer_id)

    currency = price.get("currency")
    if not currency or not isinstance(currency, str):
        raise MalformedOfferError("no currency", offer_id)
    return amount, currency


def normalize(raw: Dict[str, Any], carriers: Optional[Dict[str, str]] = None) -> ProcessedFlight:
    """
    Convert one raw flight offer into a ProcessedFlight.

    Duration is summed over every itinerary; stops, carrier and the
    departure/arrival instants come from the first itinerary only.
    Raises MalformedOfferError instead of defaulting missing data.
    """
    if not isinstance(raw, dict):
        raise MalformedOfferError(f"expected a dict, got {type(raw).__name__}")
    carriers = carriers or {}

    offer_id = raw.get("id")
    if offer_id is None or str(offer_id) == "":
        raise MalformedOfferError("no id")
    offer_id = str(offer_id)

    itineraries = _build_itineraries(offer_id, raw, carriers)
    first = itineraries[0]
    first_seg = first.segments[0]
    last_seg = first.segments[-1]

    if not first_seg.carrier_code:
        raise MalformedOfferError("first segment has no carrier", offer_id)

    price, currency = _parse_price(offer_id, raw)

    return ProcessedFlight(
        id=offer_id,
        price=price,
        currency=currency,
        total_duration=sum(it.duration_minutes for it in itineraries),
        total_stops=len(first.segments) - 1,
        main_airline=first_seg.carrier_code,
        departure_time=first_seg.dep_at,
        arrival_time=last_seg.arr_at,
        itineraries=tuple(itineraries),
        airline_name=first_seg.carrier_name,
        raw=raw,
    )


@dataclass(frozen=True)
class NormalizeResult:
    flights: List[ProcessedFlight] = field(default_factory=list)
    rejected: List[MalformedOfferError] = field(default_factory=list)


def normalize_offers(
    raws: List[Dict[str, Any]],
    carriers: Optional[Dict[str, str]] = None,
    on_error: str = "drop",
) -> NormalizeResult:
    """
    Normalize a batch.

    on_error="drop": bad offers are logged and collected in `rejected`,
    the rest of the batch goes through.
    on_error="raise": the first bad offer aborts the batch.
    """
    if on_error not in ON_ERROR_POLICIES:
        raise ValueError(f"on_error must be one of {ON_ERROR_POLICIES}, got {on_error!r}")

    flights: List[ProcessedFlight] = []
    rejected: List[MalformedOfferError] = []
    for raw in raws or []:
        try:
            flights.append(normalize(raw, carriers))
        except MalformedOfferError as e:
            if on_error == "raise":
                raise
            logger.warning("Dropping malformed offer: %s", e)
            rejected.append(e)

    return NormalizeResult(flights=flights, rejected=rejected)
