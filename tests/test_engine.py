from fareview.core.models import FilterState
from fareview.engine import pick_cheapest, run_pipeline
from fareview.services.pagination import PageWindow

from conftest import make_flight


def _batch(count):
    return [
        make_flight(
            offer_id=str(i),
            price=500 - i * 10,
            stops=i % 3,
            carrier=("AA", "DL", "UA")[i % 3],
            dep=f"2026-03-01T{i % 24:02d}:00:00",
        )
        for i in range(count)
    ]


def test_third_page_of_23_flights():
    window = PageWindow(page=3, page_size=10)
    view = run_pipeline(_batch(23), window=window)

    assert view.total_filtered_count == 23
    assert view.total_pages == 3
    assert len(view.page_flights) == 3
    assert not view.has_next_page
    # price ascending: the most expensive three are on the last page
    assert [f.price for f in view.page_flights] == [480, 490, 500]


def test_cheapest_is_taken_over_all_pages():
    view = run_pipeline(_batch(23), window=PageWindow(page=2, page_size=10))
    assert view.cheapest_flight_id == "22"
    assert all(f.id != "22" for f in view.page_flights)


def test_out_of_range_page_is_clamped():
    window = PageWindow(page=9, page_size=10)
    view = run_pipeline(_batch(12), window=window)
    assert view.current_page == 2
    assert window.page == 2
    assert len(view.page_flights) == 2


def test_filters_shrink_the_view_but_not_the_options(three_flights):
    filters = FilterState(stops=frozenset({"0"}))
    view = run_pipeline(three_flights, filters=filters)

    assert [f.id for f in view.page_flights] == ["a"]
    assert view.has_active_filters
    assert view.filter_options.airlines == ["AA", "DL", "UA"]
    assert sum(b.all_count for b in view.price_trend.buckets) == 3
    assert sum(b.filtered_count for b in view.price_trend.buckets) == 1


def test_empty_input_yields_an_empty_first_page():
    view = run_pipeline([])
    assert view.page_flights == []
    assert view.total_pages == 0
    assert view.current_page == 1
    assert view.cheapest_flight_id is None
    assert pick_cheapest([]) is None
