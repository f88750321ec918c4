from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Sequence

from .base import esc, get_value


class SearchFilter:
    """Text search plus dropdown filters over a fixed list of items.

    Every change recomputes from the full item list, so clearing the search
    or a filter brings excluded items back.
    """

    def __init__(
        self,
        items: Sequence[Any],
        *,
        search_fields: Sequence[str] = (),
        filter_fields: Optional[Mapping[str, Sequence[str]]] = None,
        on_filter_change: Optional[Callable[[list[Any]], None]] = None,
    ) -> None:
        self.items = list(items)
        self.search_fields = tuple(search_fields)
        self.filter_fields = dict(filter_fields or {})
        self.on_filter_change = on_filter_change or (lambda items: None)
        self.query = ""
        self.filters: dict[str, str] = {}
        self.filtered_items = list(self.items)

    def set_items(self, items: Sequence[Any]) -> list[Any]:
        self.items = list(items)
        return self._apply()

    def search(self, query: str) -> list[Any]:
        self.query = query or ""
        return self._apply()

    def set_filter(self, key: str, value: Optional[str]) -> list[Any]:
        if value:
            self.filters[key] = value
        else:
            self.filters.pop(key, None)
        return self._apply()

    def _matches_query(self, item: Any) -> bool:
        query = self.query.strip().lower()
        if not query:
            return True
        for path in self.search_fields:
            value = get_value(item, path)
            if value and query in str(value).lower():
                return True
        return False

    def _matches_filters(self, item: Any) -> bool:
        return all(get_value(item, key) == value for key, value in self.filters.items())

    def _apply(self) -> list[Any]:
        self.filtered_items = [
            item for item in self.items if self._matches_query(item) and self._matches_filters(item)
        ]
        self.on_filter_change(self.filtered_items)
        return self.filtered_items

    def render(self) -> str:
        selects = []
        for key, options in self.filter_fields.items():
            choices = "".join(
                f'<option value="{esc(option)}"{" selected" if self.filters.get(key) == option else ""}>'
                f"{esc(option)}</option>"
                for option in options
            )
            selects.append(
                f'<select class="filter-select" data-filter="{esc(key)}"><option value="">All</option>{choices}</select>'
            )
        return (
            '<div class="search-filter-container">'
            f'<input type="text" class="search-input" value="{esc(self.query)}">'
            f'<div class="filter-options">{"".join(selects)}</div>'
            "</div>"
        )
