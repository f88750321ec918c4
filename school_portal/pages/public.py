from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from school_portal.services.backend import Activity, Announcement, GalleryItem, Meeting, TableQuery
from school_portal.ui import GalleryManager, Pagination, SearchFilter, esc
from school_portal.ui.pagination import PageToken
from school_portal.utils import format_date, truncate_text

from .base import EMPTY, Page

logger = logging.getLogger(__name__)

HOME_ACTIVITIES = 3
HOME_ANNOUNCEMENTS = 3
HOME_GALLERY = 8

ACTIVITY_SORTS = ("date-newest", "date-oldest", "name-asc", "name-desc")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _timestamp(value: Optional[datetime]) -> float:
    if value is None:
        return 0.0
    return _naive_utc(value).replace(tzinfo=timezone.utc).timestamp()


def activity_card(activity: Activity) -> str:
    image = f'<img src="{esc(activity.image_url)}" alt="{esc(activity.title)}">' if activity.image_url else ""
    return (
        f'<article class="activity-card" data-id="{esc(activity.id)}">{image}'
        f"<h3>{esc(activity.title)}</h3>"
        f'<time>{format_date(activity.date or activity.created_at)}</time>'
        f"<p>{esc(truncate_text(activity.description, 150))}</p>"
        "</article>"
    )


def announcement_card(announcement: Announcement) -> str:
    attachment = (
        f'<a class="attachment" href="{esc(announcement.file_url)}" target="_blank" rel="noopener">Download attachment</a>'
        if announcement.file_url
        else ""
    )
    return (
        f'<article class="announcement-card" data-id="{esc(announcement.id)}">'
        f'<span class="category">{esc(announcement.category)}</span>'
        f"<h3>{esc(announcement.title)}</h3>"
        f"<time>{format_date(announcement.created_at)}</time>"
        f"<p>{esc(announcement.content)}</p>{attachment}"
        "</article>"
    )


def gallery_thumb(item: GalleryItem) -> str:
    return (
        f'<figure class="gallery-thumb"><img src="{esc(item.image_url)}" alt="{esc(item.title)}" loading="lazy">'
        f"<figcaption>{esc(item.title)}</figcaption></figure>"
    )


def _render_list(items: Sequence[object], card: Callable[[object], str]) -> str:
    if not items:
        return f'<p class="empty">{EMPTY}</p>'
    return "".join(card(item) for item in items)


def _render_page(items: Sequence[object], pagination: Pagination, card: Callable[[object], str]) -> str:
    return _render_list(items, card) + pagination.render()


def _page_controls(page: Page, ctx) -> Pagination:
    pagination = Pagination(0, ctx.settings.list_page_size)
    pagination.on_page_change = lambda number: page.render()
    return pagination


class HomePage(Page):
    async def load(self) -> None:
        gateways = self.ctx.gateways

        activities = self.container("home-activities")
        result = await self.fetch(
            gateways.activities.list(TableQuery().order("created_at", descending=True).take(HOME_ACTIVITIES)),
            activities,
            "Could not load activities",
        )
        if result.ok:
            activities.render(_render_list(result.value[:HOME_ACTIVITIES], activity_card))

        announcements = self.container("home-announcements")
        result = await self.fetch(
            gateways.announcements.list(
                TableQuery().order("created_at", descending=True).take(HOME_ANNOUNCEMENTS)
            ),
            announcements,
            "Could not load announcements",
        )
        if result.ok:
            announcements.render(_render_list(result.value[:HOME_ANNOUNCEMENTS], announcement_card))

        gallery = self.container("home-gallery")
        result = await self.fetch(
            gateways.gallery.list(TableQuery().order("order_index").take(HOME_GALLERY)),
            gallery,
            "Could not load gallery",
        )
        if result.ok:
            gallery.render(_render_list(result.value[:HOME_GALLERY], gallery_thumb))


class ActivitiesPage(Page):
    def __init__(self, ctx) -> None:
        super().__init__(ctx)
        self.sort = "date-newest"
        self.filter = SearchFilter([], search_fields=("title", "description"))
        self.pagination = _page_controls(self, ctx)

    @property
    def visible(self) -> list[Activity]:
        return self._sorted(self.filter.filtered_items)

    @property
    def page_items(self) -> list[Activity]:
        return self.pagination.page_slice(self.visible)

    async def load(self) -> None:
        target = self.container("activities")
        result = await self.fetch(self.ctx.gateways.activities.list(), target, "Could not load activities")
        if result.ok:
            self.filter.set_items(result.value)
            self.refresh()

    def search(self, query: str) -> None:
        self.filter.search(query)
        self.refresh()

    def sort_by(self, mode: str) -> None:
        if mode not in ACTIVITY_SORTS:
            raise ValueError(f"Unknown sort mode: {mode}")
        self.sort = mode
        self.refresh()

    def go_to_page(self, page: PageToken) -> int:
        return self.pagination.go_to_page(page)

    def refresh(self) -> None:
        self.pagination.reset(len(self.filter.filtered_items))
        self.render()

    def render(self) -> None:
        self.container("activities").render(_render_page(self.page_items, self.pagination, activity_card))

    def _sorted(self, items: Sequence[Activity]) -> list[Activity]:
        if self.sort == "name-asc":
            return sorted(items, key=lambda item: item.title.casefold())
        if self.sort == "name-desc":
            return sorted(items, key=lambda item: item.title.casefold(), reverse=True)
        return sorted(
            items,
            key=lambda item: _timestamp(item.date or item.created_at),
            reverse=self.sort == "date-newest",
        )


class AnnouncementsPage(Page):
    def __init__(self, ctx) -> None:
        super().__init__(ctx)
        self.filter = SearchFilter(
            [],
            search_fields=("title", "content"),
            filter_fields={"category": ctx.settings.announcement_categories},
        )
        self.pagination = _page_controls(self, ctx)

    @property
    def visible(self) -> list[Announcement]:
        return self.filter.filtered_items

    @property
    def page_items(self) -> list[Announcement]:
        return self.pagination.page_slice(self.visible)

    async def load(self) -> None:
        target = self.container("announcements")
        result = await self.fetch(self.ctx.gateways.announcements.list(), target, "Could not load announcements")
        if result.ok:
            self.filter.set_items(result.value)
            self.refresh()

    def search(self, query: str) -> None:
        self.filter.search(query)
        self.refresh()

    def filter_category(self, category: Optional[str]) -> None:
        self.filter.set_filter("category", category)
        self.refresh()

    def go_to_page(self, page: PageToken) -> int:
        return self.pagination.go_to_page(page)

    def refresh(self) -> None:
        self.pagination.reset(len(self.visible))
        self.render()

    def render(self) -> None:
        self.container("announcements").render(_render_page(self.page_items, self.pagination, announcement_card))


class MeetingsPage(Page):
    def __init__(self, ctx, *, clock: Callable[[], datetime] = _utcnow) -> None:
        super().__init__(ctx)
        self._clock = clock
        self.upcoming: list[Meeting] = []
        self.past: list[Meeting] = []

    async def load(self) -> None:
        target = self.container("meetings")
        result = await self.fetch(self.ctx.gateways.meetings.list(), target, "Could not load meetings")
        if not result.ok:
            return
        self.split(result.value)
        target.render(self.render())

    def split(self, meetings: Sequence[Meeting]) -> None:
        now = _naive_utc(self._clock())
        dated = sorted(
            (meeting for meeting in meetings if meeting.meeting_date is not None),
            key=lambda meeting: _naive_utc(meeting.meeting_date),
        )
        self.upcoming = [meeting for meeting in dated if _naive_utc(meeting.meeting_date) >= now]
        self.past = [meeting for meeting in dated if _naive_utc(meeting.meeting_date) < now]

    def day_label(self, meeting: Meeting) -> str:
        if meeting.meeting_date is None:
            return ""
        day: date = _naive_utc(meeting.meeting_date).date()
        today = _naive_utc(self._clock()).date()
        if day == today:
            return "Today"
        if day == today + timedelta(days=1):
            return "Tomorrow"
        return format_date(meeting.meeting_date)

    def card(self, meeting: Meeting, *, past: bool = False) -> str:
        badge = '<span class="past-badge">Ended</span>' if past else '<span class="upcoming-badge">Upcoming</span>'
        location = f'<p class="location">{esc(meeting.location)}</p>' if meeting.location else ""
        description = f"<p>{esc(meeting.description)}</p>" if meeting.description else ""
        return (
            f'<div class="meeting-card {"past" if past else "upcoming"}">'
            f"<h3>{esc(meeting.subject)}</h3>{badge}"
            f'<span class="day">{esc(self.day_label(meeting))}</span>'
            f'<time>{format_date(meeting.meeting_date, "HH:mm")}</time>'
            f"{location}{description}</div>"
        )

    def render(self) -> str:
        if not self.upcoming and not self.past:
            return f'<p class="empty">{EMPTY}</p>'
        html = ""
        if self.upcoming:
            html += "<h2>Upcoming meetings</h2>" + "".join(self.card(meeting) for meeting in self.upcoming)
        if self.past:
            html += "<h2>Past meetings</h2>" + "".join(self.card(meeting, past=True) for meeting in self.past)
        return html


class GalleryPage(Page):
    def __init__(self, ctx) -> None:
        super().__init__(ctx)
        self.manager = GalleryManager()

    async def load(self) -> None:
        target = self.container("gallery")
        result = await self.fetch(self.ctx.gateways.gallery.list(), target, "Could not load gallery")
        if result.ok:
            self.manager.set_gallery_items(result.value)
            self.render()

    def search(self, term: str) -> None:
        self.manager.filter_gallery(term)
        self.render()

    def sort(self, mode: str) -> None:
        self.manager.sort_gallery(mode)
        self.render()

    def open(self, index: int) -> None:
        self.manager.open_lightbox(index)
        self.container("lightbox").render(self.manager.render_lightbox())

    def handle_key(self, key: str) -> None:
        self.manager.handle_key(key)
        self.container("lightbox").render(self.manager.render_lightbox())

    def render(self) -> None:
        self.container("gallery").render(self.manager.render())
