# src/fareview/core/query_string.py

from __future__ import annotations

from datetime import date
from typing import Dict, Optional
from urllib.parse import parse_qs, urlencode

from fareview.core.models import SearchParams


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _to_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def to_query_string(params: SearchParams) -> str:
    """
    Only SearchParams are shareable; filter and sort state stay in the session.
    Unset optional fields are omitted and nonStop is written only when true.
    """
    q: Dict[str, str] = {
        "origin": params.origin,
        "destination": params.destination,
        "departureDate": params.departure_date.isoformat(),
    }
    if params.return_date:
        q["returnDate"] = params.return_date.isoformat()
    q["adults"] = str(params.adults)
    if params.children:
        q["children"] = str(params.children)
    if params.infants:
        q["infants"] = str(params.infants)
    if params.travel_class:
        q["travelClass"] = params.travel_class
    if params.non_stop:
        q["nonStop"] = "true"
    if params.currency_code:
        q["currencyCode"] = params.currency_code
    if params.max_results:
        q["maxResults"] = str(params.max_results)
    return urlencode(q)


def from_query_string(query: str) -> Optional[SearchParams]:
    """
    Rebuild SearchParams from a shared link's query string.
    Returns None when origin, destination or a valid departure date is missing.
    """
    raw = {k: v[0] for k, v in parse_qs(query.lstrip("?")).items() if v}

    origin = raw.get("origin")
    destination = raw.get("destination")
    departure_date = _to_date(raw.get("departureDate"))
    if not origin or not destination or departure_date is None:
        return None

    return SearchParams(
        origin=origin,
        destination=destination,
        departure_date=departure_date,
        return_date=_to_date(raw.get("returnDate")),
        adults=_to_int(raw.get("adults")) or 1,
        children=_to_int(raw.get("children")),
        infants=_to_int(raw.get("infants")),
        travel_class=raw.get("travelClass") or None,
        non_stop=True if raw.get("nonStop") == "true" else None,
        currency_code=raw.get("currencyCode") or None,
        max_results=_to_int(raw.get("maxResults")),
    )


def shareable_link(base_url: str, params: SearchParams) -> str:
    return f"{base_url.split('?', 1)[0]}?{to_query_string(params)}"
