from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from school_portal.services.backend.models import GalleryItem

from .base import esc

logger = logging.getLogger(__name__)

SORT_MODES = ("newest", "oldest", "a-z")
NO_MATCHES = "No matching images"


def _created_key(item: GalleryItem) -> float:
    return item.created_at.timestamp() if isinstance(item.created_at, datetime) else 0.0


class GalleryManager:
    """Filtered, sorted gallery grid with a lightbox over the visible items."""

    def __init__(self) -> None:
        self.items: list[GalleryItem] = []
        self.filtered_items: list[GalleryItem] = []
        self.current_sort = "newest"
        self.search_term = ""
        self.current_index = 0
        self.lightbox_open = False

    def set_gallery_items(self, items: Sequence[GalleryItem]) -> None:
        self.items = list(items)
        self.search_term = ""
        self.filtered_items = list(self.items)
        self._sort()

    def filter_gallery(self, term: str) -> list[GalleryItem]:
        self.search_term = term
        needle = term.lower()
        self.filtered_items = [
            item
            for item in self.items
            if needle in item.title.lower() or (item.description and needle in item.description.lower())
        ]
        self._sort()
        return self.filtered_items

    def sort_gallery(self, mode: str) -> list[GalleryItem]:
        if mode not in SORT_MODES:
            raise ValueError(f"Unknown sort mode: {mode}")
        self.current_sort = mode
        self._sort()
        return self.filtered_items

    def open_lightbox(self, index: int) -> None:
        if not 0 <= index < len(self.filtered_items):
            raise IndexError(f"No gallery item at index {index}")
        self.current_index = index
        self.lightbox_open = True

    def close_lightbox(self) -> None:
        self.lightbox_open = False

    def show_next(self) -> None:
        if self.current_index < len(self.filtered_items) - 1:
            self.current_index += 1

    def show_previous(self) -> None:
        if self.current_index > 0:
            self.current_index -= 1

    def handle_key(self, key: str) -> None:
        if not self.lightbox_open:
            return
        if key == "ArrowLeft":
            self.show_previous()
        elif key == "ArrowRight":
            self.show_next()
        elif key == "Escape":
            self.close_lightbox()

    @property
    def current_item(self) -> Optional[GalleryItem]:
        if not self.lightbox_open or not self.filtered_items:
            return None
        return self.filtered_items[self.current_index]

    @property
    def counter_text(self) -> str:
        return f"{self.current_index + 1} / {len(self.filtered_items)}"

    def render(self) -> str:
        if not self.filtered_items:
            return f'<p class="empty">{NO_MATCHES}</p>'
        cells = []
        for index, item in enumerate(self.filtered_items):
            description = f"<small>{esc(item.description)}</small>" if item.description else ""
            cells.append(
                f'<div class="gallery-item" data-index="{index}" tabindex="0" role="button">'
                f'<img src="{esc(item.image_url)}" alt="{esc(item.title)}" loading="lazy">'
                f'<div class="gallery-overlay"><p>{esc(item.title)}</p>{description}</div>'
                "</div>"
            )
        return "".join(cells)

    def render_lightbox(self) -> str:
        item = self.current_item
        if item is None:
            return ""
        return (
            '<div class="lightbox active">'
            f'<img src="{esc(item.image_url)}" alt="{esc(item.title)}">'
            f'<h3 class="lightbox-title">{esc(item.title)}</h3>'
            f'<span class="lightbox-counter">{self.counter_text}</span>'
            "</div>"
        )

    def _sort(self) -> None:
        if self.current_sort == "newest":
            self.filtered_items.sort(key=_created_key, reverse=True)
        elif self.current_sort == "oldest":
            self.filtered_items.sort(key=_created_key)
        elif self.current_sort == "a-z":
            self.filtered_items.sort(key=lambda item: item.title.casefold())
        if self.current_index >= len(self.filtered_items):
            self.current_index = max(0, len(self.filtered_items) - 1)
