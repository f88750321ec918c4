from __future__ import annotations

from datetime import date, datetime

import pytest

from school_portal.context import AppContext
from school_portal.pages import (
    ActivitiesPage,
    AnnouncementsPage,
    CertificateRequestPage,
    ContactPage,
    GalleryPage,
    HomePage,
    MeetingsPage,
)

from .conftest import FakeBackend


def seed_activities(backend: FakeBackend, count: int) -> None:
    backend.seed(
        "activities",
        *(
            {
                "title": f"Activity {index}",
                "description": f"About {index}",
                "date": f"2024-03-{index + 1:02d}T10:00:00",
                "created_at": f"2024-03-{index + 1:02d}T10:00:00",
            }
            for index in range(count)
        ),
    )


@pytest.mark.asyncio
async def test_home_page_shows_latest_items(ctx: AppContext, backend: FakeBackend) -> None:
    seed_activities(backend, 5)
    backend.seed(
        "announcements",
        *({"title": f"Notice {i}", "content": "c", "category": "عام", "created_at": f"2024-02-0{i + 1}"} for i in range(4)),
    )
    backend.seed(
        "gallery",
        *({"title": f"Photo {i}", "image_url": f"{i}.jpg", "order_index": i} for i in range(10)),
    )

    await HomePage(ctx).load()

    activities = ctx.containers.get("home-activities").html
    assert activities.count('class="activity-card"') == 3
    assert "Activity 4" in activities
    assert "Activity 1" not in activities
    assert ctx.containers.get("home-announcements").html.count('class="announcement-card"') == 3
    gallery = ctx.containers.get("home-gallery").html
    assert gallery.count('class="gallery-thumb"') == 8
    assert gallery.index("Photo 0") < gallery.index("Photo 7")


@pytest.mark.asyncio
async def test_public_page_renders_error_instead_of_raising(ctx: AppContext, backend: FakeBackend) -> None:
    backend.fail("GET", "activities", status=500)

    await ActivitiesPage(ctx).load()

    assert ctx.containers.get("activities").html == '<p class="error">Could not load activities</p>'


@pytest.mark.asyncio
async def test_empty_table_renders_placeholder(ctx: AppContext) -> None:
    await ActivitiesPage(ctx).load()

    assert 'class="empty"' in ctx.containers.get("activities").html


@pytest.mark.asyncio
async def test_activities_search_and_sort(ctx: AppContext, backend: FakeBackend) -> None:
    backend.seed(
        "activities",
        {"title": "Chess", "description": "Club", "date": "2024-01-05", "created_at": "2024-01-05"},
        {"title": "Art", "description": "Painting", "date": "2024-02-05", "created_at": "2024-02-05"},
        {"title": "Baking", "description": "Chess themed cakes", "date": "2024-03-05", "created_at": "2024-03-05"},
    )
    page = ActivitiesPage(ctx)
    await page.load()

    assert [item.title for item in page.visible] == ["Baking", "Art", "Chess"]
    page.sort_by("date-oldest")
    assert [item.title for item in page.visible] == ["Chess", "Art", "Baking"]
    page.sort_by("name-desc")
    assert [item.title for item in page.visible] == ["Chess", "Baking", "Art"]

    page.search("chess")
    assert [item.title for item in page.visible] == ["Chess", "Baking"]
    assert "Art" not in ctx.containers.get("activities").html

    with pytest.raises(ValueError):
        page.sort_by("random")


@pytest.mark.asyncio
async def test_activities_are_paginated_by_configured_page_size(ctx: AppContext, backend: FakeBackend) -> None:
    seed_activities(backend, 25)
    page = ActivitiesPage(ctx)
    await page.load()

    html = ctx.containers.get("activities").html
    assert ctx.settings.list_page_size == 20
    assert html.count('class="activity-card"') == 20
    assert "Page 1 of 2" in html
    assert page.page_items[0].title == "Activity 24"

    assert page.go_to_page("next") == 2
    html = ctx.containers.get("activities").html
    assert html.count('class="activity-card"') == 5
    assert "Page 2 of 2" in html
    assert [item.title for item in page.page_items] == [f"Activity {index}" for index in range(4, -1, -1)]

    page.search("About 1")
    assert page.pagination.current_page == 1
    assert "pagination" not in ctx.containers.get("activities").html


@pytest.mark.asyncio
async def test_announcements_are_paginated(ctx: AppContext, backend: FakeBackend) -> None:
    backend.seed(
        "announcements",
        *({"title": f"Notice {index}", "content": "Text", "category": "عام"} for index in range(23)),
    )
    page = AnnouncementsPage(ctx)
    await page.load()

    assert len(page.page_items) == 20
    page.go_to_page(2)
    assert len(page.page_items) == 3
    assert ctx.containers.get("announcements").html.count('class="announcement-card"') == 3


@pytest.mark.asyncio
async def test_announcements_category_filter_and_attachments(ctx: AppContext, backend: FakeBackend) -> None:
    backend.seed(
        "announcements",
        {"title": "Exams", "content": "June", "category": "امتحانات", "file_url": "https://cdn.test/x.pdf"},
        {"title": "Welcome", "content": "Hello", "category": "عام"},
    )
    page = AnnouncementsPage(ctx)
    await page.load()

    page.filter_category("امتحانات")

    assert [item.title for item in page.visible] == ["Exams"]
    html = ctx.containers.get("announcements").html
    assert 'href="https://cdn.test/x.pdf"' in html

    page.filter_category(None)
    page.search("hello")
    assert [item.title for item in page.visible] == ["Welcome"]


@pytest.mark.asyncio
async def test_meetings_split_and_labels(ctx: AppContext, backend: FakeBackend) -> None:
    backend.seed(
        "meetings",
        {"subject": "Later", "meeting_date": "2024-05-20T09:00:00"},
        {"subject": "Past", "meeting_date": "2024-05-01T09:00:00"},
        {"subject": "Tomorrow", "meeting_date": "2024-05-11T09:00:00"},
        {"subject": "Today", "meeting_date": "2024-05-10T15:00:00"},
    )
    page = MeetingsPage(ctx, clock=lambda: datetime(2024, 5, 10, 12, 0))

    await page.load()

    assert [meeting.subject for meeting in page.upcoming] == ["Today", "Tomorrow", "Later"]
    assert [meeting.subject for meeting in page.past] == ["Past"]
    assert [page.day_label(meeting) for meeting in page.upcoming] == ["Today", "Tomorrow", "20/05/2024"]
    html = ctx.containers.get("meetings").html
    assert html.index("Upcoming meetings") < html.index("Past meetings")


@pytest.mark.asyncio
async def test_gallery_page_lightbox(ctx: AppContext, backend: FakeBackend) -> None:
    backend.seed(
        "gallery",
        {"title": "One", "image_url": "1.jpg", "created_at": "2024-01-01"},
        {"title": "Two", "image_url": "2.jpg", "created_at": "2024-01-02"},
    )
    page = GalleryPage(ctx)
    await page.load()

    page.open(0)
    page.handle_key("ArrowRight")

    assert "2 / 2" in ctx.containers.get("lightbox").html
    page.handle_key("Escape")
    assert ctx.containers.get("lightbox").html == ""


@pytest.mark.asyncio
async def test_certificate_form_rejects_invalid_massar(ctx: AppContext, backend: FakeBackend) -> None:
    page = CertificateRequestPage(ctx)

    ok = await page.submit({"first_name": "Amina", "last_name": "Alaoui", "massar_number": "123"})

    assert ok is False
    assert "11 digits" in ctx.containers.get("certificate-form").html
    assert backend.calls == []


@pytest.mark.asyncio
async def test_certificate_form_submits_pending_request(ctx: AppContext, backend: FakeBackend) -> None:
    page = CertificateRequestPage(ctx, today=lambda: date(2024, 5, 1))

    ok = await page.submit({"first_name": "Amina", "last_name": "Alaoui", "massar_number": "12345678901"})

    assert ok is True
    payload = backend.calls_to("POST", "certificate_requests")[0].json()
    assert payload["submission_date"] == "2024-05-01"
    assert payload["status"] == "pending"
    assert 'class="success"' in ctx.containers.get("certificate-form").html


@pytest.mark.asyncio
async def test_contact_form_reports_backend_failure(ctx: AppContext, backend: FakeBackend) -> None:
    backend.fail("POST", "contacts", status=503, body='{"message": "maintenance"}')

    ok = await ContactPage(ctx).submit(
        {
            "name": "Omar",
            "email": "omar@example.com",
            "subject": "Question",
            "message": "When does school start?",
        }
    )

    assert ok is False
    html = ctx.containers.get("contact-form").html
    assert "Could not send your message" in html
    assert "maintenance" in html
