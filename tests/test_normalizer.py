from datetime import datetime

import pytest

from fareview.core.errors import MalformedOfferError
from fareview.core.normalizer import normalize, normalize_offers, parse_duration_minutes


def test_parse_duration_minutes_handles_partial_components():
    assert parse_duration_minutes("PT2H30M") == 150
    assert parse_duration_minutes("PT1H15M") == 75
    assert parse_duration_minutes("PT45M") == 45
    assert parse_duration_minutes("PT3H") == 180


@pytest.mark.parametrize("bad", [None, "", "2H30M", "P1D"])
def test_parse_duration_minutes_rejects_garbage(bad):
    with pytest.raises(ValueError):
        parse_duration_minutes(bad)


def test_normalize_derives_fields_from_first_itinerary(raw_offer_factory):
    raw = raw_offer_factory(offer_id="42", price=199.99, stops=1, carrier="DL", dep="2026-03-01T08:00:00")

    flight = normalize(raw, {"DL": "Delta Air Lines"})

    assert flight.id == "42"
    assert flight.price == pytest.approx(199.99)
    assert flight.currency == "USD"
    assert flight.total_stops == 1
    assert flight.stop_bucket == "1"
    assert flight.main_airline == "DL"
    assert flight.airline_name == "Delta Air Lines"
    # 120 + 60 connection + 120
    assert flight.total_duration == 300
    assert flight.departure_time == datetime(2026, 3, 1, 8, 0)
    assert flight.arrival_time == datetime(2026, 3, 1, 13, 0)
    assert flight.raw is raw


def test_normalize_sums_duration_across_itineraries_but_counts_outbound_stops(raw_offer_factory):
    raw = raw_offer_factory(stops=0, leg_minutes=90, return_dep="2026-03-08T10:00:00")
    # make the return leg longer and with a stop: only the duration should count
    raw["itineraries"][1] = raw_offer_factory(stops=2, leg_minutes=60)["itineraries"][0]

    flight = normalize(raw)

    assert flight.total_stops == 0
    # outbound 90 + return (60 + 60 + 60 + 60 + 60)
    assert flight.total_duration == 90 + 300
    assert len(flight.itineraries) == 2
    assert flight.itineraries[1].direction == "RETURN"


def test_normalize_falls_back_to_grand_total(raw_offer_factory):
    raw = raw_offer_factory(price=321)
    del raw["price"]["total"]
    assert normalize(raw).price == 321.0


def test_normalize_accepts_utc_suffix(raw_offer_factory):
    raw = raw_offer_factory()
    raw["itineraries"][0]["segments"][0]["departure"]["at"] = "2026-03-01T08:00:00Z"
    assert normalize(raw).departure_time.hour == 8


@pytest.mark.parametrize(
    "breakage",
    [
        lambda r: r.pop("id"),
        lambda r: r.update(itineraries=[]),
        lambda r: r["itineraries"][0].update(segments=[]),
        lambda r: r["itineraries"][0].update(duration="soon"),
        lambda r: r["itineraries"][0]["segments"][0]["departure"].pop("at"),
        lambda r: r.update(price={"currency": "USD"}),
        lambda r: r["price"].update(total="abc"),
    ],
)
def test_normalize_fails_fast_on_malformed_offer(raw_offer_factory, breakage):
    raw = raw_offer_factory()
    breakage(raw)
    with pytest.raises(MalformedOfferError):
        normalize(raw)


def test_normalize_offers_drops_bad_offers_and_keeps_the_rest(raw_offer_factory):
    good_1 = raw_offer_factory(offer_id="1")
    bad = raw_offer_factory(offer_id="2")
    bad["itineraries"] = []
    good_2 = raw_offer_factory(offer_id="3")

    result = normalize_offers([good_1, bad, good_2])

    assert [f.id for f in result.flights] == ["1", "3"]
    assert len(result.rejected) == 1
    assert result.rejected[0].offer_id == "2"


def test_normalize_offers_raise_policy_aborts_batch(raw_offer_factory):
    bad = raw_offer_factory(offer_id="2")
    bad["itineraries"] = []

    with pytest.raises(MalformedOfferError):
        normalize_offers([raw_offer_factory(), bad], on_error="raise")


def test_normalize_offers_rejects_unknown_policy():
    with pytest.raises(ValueError):
        normalize_offers([], on_error="ignore")


@pytest.mark.parametrize(
    "breakage",
    [
        lambda r: r["itineraries"][0].update(segments=[None]),
        lambda r: r.update(itineraries=["not-an-itinerary"]),
        lambda r: r.update(itineraries={"segments": []}),
        lambda r: r["itineraries"][0].update(segments="AA100"),
        lambda r: r["itineraries"][0]["segments"][0].update(departure="JFK"),
        lambda r: r["itineraries"][0]["segments"][0]["departure"].update(at=1772352000),
        lambda r: r["itineraries"][0]["segments"][0].update(aircraft="321"),
        lambda r: r.update(price="120.00"),
        lambda r: r["price"].update(total="NaN", grandTotal="NaN"),
        lambda r: r["price"].update(total="Infinity"),
        lambda r: r["price"].pop("currency"),
    ],
)
def test_normalize_rejects_wrongly_typed_offer_data(raw_offer_factory, breakage):
    raw = raw_offer_factory(offer_id="bad")
    breakage(raw)
    with pytest.raises(MalformedOfferError) as excinfo:
        normalize(raw)
    assert excinfo.value.offer_id == "bad"


def test_one_wrongly_typed_offer_does_not_sink_the_batch(raw_offer_factory):
    good = raw_offer_factory(offer_id="good")
    no_segment = raw_offer_factory(offer_id="no-segment")
    no_segment["itineraries"][0]["segments"] = [None]
    string_price = raw_offer_factory(offer_id="string-price")
    string_price["price"] = "120.00"
    nan_price = raw_offer_factory(offer_id="nan-price")
    nan_price["price"]["total"] = "NaN"

    result = normalize_offers([no_segment, good, string_price, nan_price])

    assert [f.id for f in result.flights] == ["good"]
    assert [e.offer_id for e in result.rejected] == ["no-segment", "string-price", "nan-price"]


def test_offset_timestamps_become_naive_wall_clock(raw_offer_factory):
    raw = raw_offer_factory()
    seg = raw["itineraries"][0]["segments"][0]
    seg["departure"]["at"] = "2026-03-01T08:00:00Z"
    seg["arrival"]["at"] = "2026-03-01T10:00:00-05:00"

    flight = normalize(raw)

    assert flight.departure_time == datetime(2026, 3, 1, 8, 0)
    assert flight.departure_time.tzinfo is None
    assert flight.arrival_time.tzinfo is None
    assert flight.arrival_hour == 10
