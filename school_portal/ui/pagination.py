from __future__ import annotations

import math
from typing import Callable, Sequence, TypeVar, Union

from .base import esc

T = TypeVar("T")

ELLIPSIS = "..."
MAX_VISIBLE_PAGES = 5

PageToken = Union[int, str]


class Pagination:
    def __init__(self, total_items: int, page_size: int = 10) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.total_items = max(0, int(total_items))
        self.page_size = int(page_size)
        self.current_page = 1
        self.on_page_change: Callable[[int], None] = lambda page: None

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.page_size)

    def reset(self, total_items: int) -> None:
        """Point at a new item count and go back to the first page."""
        self.total_items = max(0, int(total_items))
        self.current_page = 1

    def page_numbers(self) -> list[PageToken]:
        total = self.total_pages
        if total <= MAX_VISIBLE_PAGES:
            return list(range(1, total + 1))

        pages: list[PageToken] = [1]
        start = max(2, self.current_page - 1)
        end = min(total - 1, self.current_page + 1)
        if start > 2:
            pages.append(ELLIPSIS)
        pages.extend(range(start, end + 1))
        if end < total - 1:
            pages.append(ELLIPSIS)
        pages.append(total)
        return pages

    def go_to_page(self, page: PageToken) -> int:
        previous = self.current_page
        if page == "prev":
            if self.current_page > 1:
                self.current_page -= 1
        elif page == "next":
            if self.current_page < self.total_pages:
                self.current_page += 1
        elif page != ELLIPSIS:
            target = int(page)
            self.current_page = min(max(1, target), max(1, self.total_pages))
        if self.current_page != previous:
            self.on_page_change(self.current_page)
        return self.current_page

    def page_slice(self, items: Sequence[T]) -> list[T]:
        start = (self.current_page - 1) * self.page_size
        return list(items[start : start + self.page_size])

    def render(self) -> str:
        if self.total_pages <= 1:
            return ""
        numbers = "".join(
            f'<span class="pagination-ellipsis">{ELLIPSIS}</span>'
            if page == ELLIPSIS
            else f'<button class="pagination-number{" active" if page == self.current_page else ""}" '
            f'data-page="{page}">{page}</button>'
            for page in self.page_numbers()
        )
        prev_disabled = " disabled" if self.current_page == 1 else ""
        next_disabled = " disabled" if self.current_page == self.total_pages else ""
        return (
            '<nav class="pagination">'
            f'<button class="pagination-btn" data-page="prev"{prev_disabled}>&larr;</button>'
            f'<div class="pagination-pages">{numbers}</div>'
            f'<button class="pagination-btn" data-page="next"{next_disabled}>&rarr;</button>'
            f'<span class="pagination-info">{esc(f"Page {self.current_page} of {self.total_pages}")}</span>'
            "</nav>"
        )
