import pytest

from fareview.services.pagination import PageWindow, Paginator


def test_23_items_make_three_pages_with_three_on_the_last():
    window = PageWindow(page=3, page_size=10)
    items = list(range(23))

    assert window.total_pages(len(items)) == 3
    assert window.slice(items) == [20, 21, 22]
    assert not window.has_next_page(len(items))


def test_pages_concatenate_to_the_whole_sequence():
    items = list(range(47))
    window = PageWindow(page_size=10)

    collected = []
    for page in range(1, window.total_pages(len(items)) + 1):
        collected.extend(window.slice(items, page))

    assert collected == items


def test_clamp_pulls_index_back_but_does_not_reset():
    window = PageWindow(page=5, page_size=10)
    assert window.clamp(23) == 3
    window.page = 2
    assert window.clamp(23) == 2


def test_clamp_on_empty_collection_stays_on_page_one():
    window = PageWindow(page=4, page_size=10)
    assert window.clamp(0) == 1
    assert window.total_pages(0) == 0
    assert window.slice([]) == []
    assert not window.has_next_page(0)


def test_page_size_must_be_positive():
    with pytest.raises(ValueError):
        PageWindow(page_size=0)


def test_paginator_memoizes_and_warms_the_next_page():
    items = list(range(25))
    window = PageWindow(page=1, page_size=10)
    paginator = Paginator()

    first = paginator.page(items, "view", window)
    assert first == list(range(10))
    assert paginator.page(items, "view", window) is first

    assert not paginator.is_warm("view", window, 2)
    paginator.warm_next(items, "view", window)
    assert paginator.is_warm("view", window, 2)


def test_warm_next_on_last_page_is_a_no_op():
    items = list(range(5))
    window = PageWindow(page=1, page_size=10)
    paginator = Paginator()
    paginator.warm_next(items, "view", window)
    assert len(paginator) == 0


def test_warm_next_swallows_errors():
    class Exploding(list):
        def __getitem__(self, item):
            raise RuntimeError("boom")

    window = PageWindow(page=1, page_size=2)
    paginator = Paginator()
    # must not raise
    paginator.warm_next(Exploding([1, 2, 3, 4]), "view", window)
    assert not paginator.is_warm("view", window, 2)


def test_paginator_evicts_oldest_entries():
    paginator = Paginator(max_entries=2)
    window = PageWindow(page_size=1)
    items = [1, 2, 3]
    for page in (1, 2, 3):
        paginator.page(items, "view", window, page)
    assert len(paginator) == 2
    assert not paginator.is_warm("view", window, 1)
