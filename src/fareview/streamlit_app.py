import asyncio
import logging
from datetime import date, timedelta
from urllib.parse import parse_qsl, urlencode

import streamlit as st

from fareview.config import load_settings
from fareview.core.errors import InvalidFilterError, InvalidSearchParamsError
from fareview.core.formatting import format_duration, format_hour, format_price, format_time
from fareview.core.models import SearchParams, TRAVEL_CLASSES
from fareview.core.price_trend import trend_to_frame
from fareview.core.query_string import from_query_string, to_query_string
from fareview.providers.mock_provider import MockProvider
from fareview.services.offer_cache import OfferCache
from fareview.services.session import SessionController

logging.basicConfig(level=logging.INFO)

st.set_page_config(
    page_title="Fareview",
    layout="wide",
)


@st.cache_resource
def load_cache() -> OfferCache:
    settings = load_settings()
    return OfferCache(
        MockProvider(),
        max_results=settings.max_results,
        stale_after=settings.cache_stale_seconds,
        evict_after=settings.cache_evict_seconds,
    )


def get_session() -> SessionController:
    if "session" not in st.session_state:
        settings = load_settings()
        st.session_state["session"] = SessionController(
            load_cache(),
            page_size=settings.page_size,
            on_malformed=settings.on_malformed,
        )
    return st.session_state["session"]


settings = load_settings()
session = get_session()

# A shared link pre-fills the form
shared = from_query_string(urlencode(st.query_params.to_dict())) if st.query_params else None
initial = session.params or shared

st.title("✈️ Fareview")

with st.sidebar:
    st.header("Search flights")

    origin = st.text_input("From", initial.origin if initial else "JFK")
    destination = st.text_input("To", initial.destination if initial else "LAX")

    today = date.today()
    departure_date = st.date_input(
        "Departure date",
        value=initial.departure_date if initial else today + timedelta(days=14),
        min_value=today,
    )
    round_trip = st.checkbox("Return flight", value=bool(initial and initial.return_date))
    return_date = None
    if round_trip:
        return_date = st.date_input(
            "Return date",
            value=(initial.return_date if initial and initial.return_date else departure_date + timedelta(days=7)),
            min_value=departure_date,
        )

    adults = st.number_input("Adults", min_value=1, value=initial.adults if initial else 1, step=1)
    travel_class = st.selectbox("Cabin", options=["Any"] + list(TRAVEL_CLASSES))
    non_stop = st.checkbox("Non-stop only")

    search_clicked = st.button("Search")

if search_clicked:
    params = SearchParams(
        origin=origin.strip().upper(),
        destination=destination.strip().upper(),
        departure_date=departure_date,
        return_date=return_date,
        adults=int(adults),
        travel_class=None if travel_class == "Any" else travel_class,
        non_stop=True if non_stop else None,
        currency_code=(initial.currency_code if initial and initial.currency_code else settings.default_currency),
    )
    try:
        with st.spinner("Searching flights..."):
            asyncio.run(session.search(params))
        st.query_params.from_dict(dict(parse_qsl(to_query_string(params))))
    except InvalidSearchParamsError as e:
        st.error(str(e))

if session.error:
    st.error(f"Search failed: {session.error}")
elif not session.flights:
    st.info("Use the sidebar to configure a search, then click **Search**. 🚀")
else:
    options = session.view().filter_options

    with st.sidebar:
        st.markdown("---")
        st.header("Filters")
        try:
            lo, hi = options.price_range
            if lo < hi:
                session.update_filter("price_range", st.slider(
                    "Price", min_value=int(lo), max_value=int(hi), value=tuple(int(v) for v in session.filters.price_range)))
            session.update_filter("stops", st.multiselect(
                "Stops", options=["0", "1", "2+"], default=sorted(session.filters.stops)))
            session.update_filter("airlines", st.multiselect(
                "Airlines",
                options=options.airlines,
                default=sorted(session.filters.airlines),
                format_func=lambda code: session.carriers.get(code, code),
            ))
            session.update_filter("departure_time_range", st.slider(
                "Departure hour", 0, 23, value=tuple(session.filters.departure_time_range), format="%d h"))
            dep_lo, dep_hi = session.filters.departure_time_range
            st.caption(f"Departing {format_hour(dep_lo)} to {format_hour(dep_hi)}, local time")
            session.update_filter("arrival_time_range", st.slider(
                "Arrival hour", 0, 23, value=tuple(session.filters.arrival_time_range), format="%d h"))
            d_lo, d_hi = options.duration_range
            if d_lo < d_hi:
                session.update_filter("duration", st.slider(
                    "Duration (minutes)", min_value=int(d_lo), max_value=int(d_hi), value=tuple(session.filters.duration)))
        except InvalidFilterError as e:
            st.warning(str(e))

        if session.has_active_filters and st.button("Reset filters"):
            session.reset_filters()
            st.rerun()

    sort_cols = st.columns(3)
    for col, field in zip(sort_cols, ("price", "duration", "departure")):
        arrow = ""
        if field == session.sort_field:
            arrow = " ↑" if session.sort_direction == "asc" else " ↓"
        if col.button(f"Sort by {field}{arrow}"):
            session.toggle_sort(field)
            st.rerun()

    view = session.view()
    trend = view.price_trend

    st.subheader("Price analysis")
    c1, c2, c3, c4 = st.columns(4)
    currency = view.page_flights[0].currency if view.page_flights else settings.default_currency
    c1.metric("Average", format_price(trend.average, currency))
    c2.metric("Lowest", format_price(trend.lowest, currency))
    c3.metric("Highest", format_price(trend.highest, currency))
    c4.metric("Potential savings", f"{trend.savings_percent}%")
    if trend.buckets:
        st.bar_chart(trend_to_frame(trend))

    st.subheader(f"{view.total_filtered_count} flights")
    if not view.page_flights:
        st.warning("No flights match these filters.")
    for flight in view.page_flights:
        badge = "⭐ Best deal · " if flight.id == view.cheapest_flight_id else ""
        st.markdown(
            f"**{badge}{view.carriers.get(flight.main_airline, flight.main_airline)}** · "
            f"{format_time(flight.departure_time)} → {format_time(flight.arrival_time)} · "
            f"{format_duration(flight.total_duration)} · "
            f"{'Non-stop' if flight.total_stops == 0 else f'{flight.total_stops} stop(s)'} · "
            f"**{format_price(flight.price, flight.currency)}**"
        )

    p1, p2, p3 = st.columns([1, 2, 1])
    if p1.button("← Previous", disabled=view.current_page <= 1):
        session.prev_page()
        st.rerun()
    p2.caption(f"Page {view.current_page} of {max(1, view.total_pages)}")
    if p3.button("Next →", disabled=not view.has_next_page):
        session.next_page()
        st.rerun()

    if session.rejected:
        st.caption(f"{len(session.rejected)} offer(s) skipped because they were incomplete.")
