from __future__ import annotations

import pytest

from school_portal.ui import Pagination


def test_total_pages_rounds_up() -> None:
    assert Pagination(95, 10).total_pages == 10
    assert Pagination(0, 10).total_pages == 0


def test_page_numbers_compress_with_ellipsis() -> None:
    pagination = Pagination(95, 10)

    assert pagination.page_numbers() == [1, 2, "...", 10]
    pagination.go_to_page(5)
    assert pagination.page_numbers() == [1, "...", 4, 5, 6, "...", 10]
    pagination.go_to_page(10)
    assert pagination.page_numbers() == [1, "...", 9, 10]


def test_few_pages_are_listed_in_full() -> None:
    assert Pagination(50, 10).page_numbers() == [1, 2, 3, 4, 5]


def test_prev_and_next_are_noops_at_edges() -> None:
    changes: list[int] = []
    pagination = Pagination(95, 10)
    pagination.on_page_change = changes.append

    pagination.go_to_page("prev")
    assert pagination.current_page == 1

    pagination.go_to_page(10)
    pagination.go_to_page("next")
    assert pagination.current_page == 10
    assert changes == [10]


def test_ellipsis_click_does_nothing() -> None:
    pagination = Pagination(95, 10)
    pagination.go_to_page("...")
    assert pagination.current_page == 1


def test_page_slice_returns_current_page_items() -> None:
    pagination = Pagination(25, 10)
    pagination.go_to_page("next")
    pagination.go_to_page("next")

    assert pagination.page_slice(list(range(25))) == [20, 21, 22, 23, 24]


def test_render_hides_single_page() -> None:
    assert Pagination(5, 10).render() == ""
    html = Pagination(30, 10).render()
    assert 'data-page="prev" disabled' in html
    assert "Page 1 of 3" in html


def test_page_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Pagination(10, 0)
