from __future__ import annotations

import logging
from typing import Any, Awaitable, Optional, TypeVar

from school_portal.context import AppContext
from school_portal.media import compress_image
from school_portal.services.backend import (
    BackendError,
    RecordId,
    Result,
    StorageLimitError,
    TableRepository,
    create_with_upload,
)
from school_portal.ui import ConfirmDialog, DataExport, esc
from school_portal.utils import format_bytes, format_date, truncate_text

logger = logging.getLogger(__name__)

T = TypeVar("T")

SECTIONS = ("activities", "announcements", "gallery", "certificate_requests", "contacts", "meetings")

# Which record attribute labels a row in the dashboard tables.
_LABELS = {
    "activities": "title",
    "announcements": "title",
    "gallery": "title",
    "certificate_requests": "full_name",
    "contacts": "subject",
    "meetings": "subject",
}

UPLOAD_BUCKETS = {
    "activities": ("activities", "image_url"),
    "announcements": ("announcements", "file_url"),
    "gallery": ("gallery", "image_url"),
}

# Uploads in these tables are images and are recompressed before upload.
IMAGE_TABLES = frozenset({"activities", "gallery"})


def _same_id(left: Any, right: Any) -> bool:
    return left is not None and right is not None and str(left) == str(right)


class DashboardController:
    """Admin dashboard: each action notifies on failure and keeps prior state."""

    def __init__(self, ctx: AppContext) -> None:
        self.ctx = ctx
        self.section = SECTIONS[0]
        self.records: dict[str, list[Any]] = {}
        self.dialog: Optional[ConfirmDialog] = None

    @property
    def notifications(self):
        return self.ctx.notifications

    def repository(self, table: str) -> TableRepository[Any]:
        return self.ctx.gateways.by_table(table)

    # auth

    async def login(self, email: str, password: str) -> bool:
        try:
            user = await self.ctx.session.sign_in(email, password)
        except BackendError as exc:
            self.notifications.error(str(exc))
            return False
        self.notifications.success(f"Welcome {user.full_name or user.email}")
        await self.load_all()
        return True

    def logout(self) -> None:
        self.ctx.session.sign_out()
        self.records.clear()
        self.dialog = None
        self.notifications.info("Signed out")

    def ensure_signed_in(self) -> bool:
        if self.ctx.session.is_authenticated():
            return True
        self.notifications.error("Please sign in first")
        return False

    # loading

    async def switch_section(self, section: str) -> None:
        if section not in SECTIONS:
            raise ValueError(f"Unknown dashboard section: {section}")
        self.section = section
        await self.load(section)

    async def load(self, table: str) -> list[Any]:
        result = await self._run(self.repository(table).list(), f"Could not load {table}")
        if result.ok:
            self.records[table] = result.value
            self.ctx.containers.get(f"dashboard-{table}").render(self.render_table(table))
        return self.records.get(table, [])

    async def load_all(self) -> None:
        for table in SECTIONS:
            await self.load(table)

    # writes

    async def create(self, table: str, fields: dict[str, Any]) -> Optional[Any]:
        if not self.ensure_signed_in():
            return None
        result = await self._run(self.repository(table).create(fields), f"Could not save to {table}")
        if not result.ok:
            return None
        self.notifications.success("Saved")
        await self.load(table)
        return result.value

    async def create_with_file(
        self,
        table: str,
        fields: dict[str, Any],
        *,
        data: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> Optional[Any]:
        """Create a record whose image or attachment is uploaded first.

        Activity and gallery images are checked against their size limit
        (the gallery one for gallery images, the general upload limit for
        activities) and compressed to JPEG before upload.
        """
        if not self.ensure_signed_in():
            return None
        bucket, url_field = UPLOAD_BUCKETS[table]
        settings = self.ctx.settings
        try:
            if table in IMAGE_TABLES:
                limit = settings.gallery_max_image_bytes if table == "gallery" else settings.max_upload_bytes
                if len(data) > limit:
                    raise StorageLimitError(
                        f"Image is too large ({format_bytes(len(data))}); limit is {format_bytes(limit)}",
                        size=len(data),
                        limit=limit,
                    )
                image = compress_image(
                    data,
                    max_width=settings.max_image_width,
                    max_height=settings.max_image_height,
                    quality=settings.image_quality,
                )
                data, content_type = image.data, image.content_type
        except BackendError as exc:
            self.notifications.error(str(exc))
            return None

        result = await self._run(
            create_with_upload(
                self.ctx.gateways.storage,
                self.repository(table),
                fields,
                data=data,
                filename=filename,
                bucket=bucket,
                url_field=url_field,
                content_type=content_type,
            ),
            f"Could not save to {table}",
        )
        if not result.ok:
            return None
        self.notifications.success("Saved")
        await self.load(table)
        return result.value

    async def delete(self, table: str, record_id: RecordId) -> bool:
        if not self.ensure_signed_in():
            return False
        self.dialog = ConfirmDialog.show()
        try:
            confirmed = await self.dialog
        finally:
            self.dialog = None
        if not confirmed:
            return False
        result = await self._run(self.repository(table).delete(record_id), "Could not delete")
        if not result.ok:
            return False
        self.records[table] = [item for item in self.records.get(table, []) if not _same_id(item.id, record_id)]
        self.ctx.containers.get(f"dashboard-{table}").render(self.render_table(table))
        self.notifications.success("Deleted")
        return True

    async def update_certificate_status(self, record_id: RecordId, status: str, notes: str = "") -> bool:
        if not self.ensure_signed_in():
            return False
        result = await self._run(
            self.ctx.gateways.certificates.update_status(record_id, status, notes),
            "Could not update the request",
        )
        if not result.ok:
            return False
        self.notifications.success("Request updated")
        await self.load("certificate_requests")
        return True

    async def mark_contact_read(self, record_id: RecordId) -> bool:
        if not self.ensure_signed_in():
            return False
        result = await self._run(self.ctx.gateways.contacts.mark_as_read(record_id), "Could not update the message")
        if not result.ok:
            return False
        for message in self.records.get("contacts", []):
            if _same_id(message.id, record_id):
                message.is_read = True
        return True

    # summaries

    def counts(self) -> dict[str, int]:
        summary = {table: len(self.records.get(table, [])) for table in SECTIONS}
        summary["pending_certificates"] = sum(
            1 for item in self.records.get("certificate_requests", []) if item.status == "pending"
        )
        summary["unread_contacts"] = sum(1 for item in self.records.get("contacts", []) if not item.is_read)
        return summary

    def export_csv(self, table: str) -> str:
        if table not in SECTIONS:
            raise ValueError(f"Unknown dashboard section: {table}")
        return DataExport.to_csv(self.records.get(table, []))

    def render_table(self, table: str) -> str:
        items = self.records.get(table, [])
        if not items:
            return '<p class="empty">No records</p>'
        label = _LABELS[table]
        rows = "".join(
            f'<tr data-id="{esc(item.id)}"><td>{esc(truncate_text(str(getattr(item, label, "")), 60))}</td>'
            f"<td>{format_date(item.created_at)}</td>"
            f'<td><button class="btn-delete" data-id="{esc(item.id)}">Delete</button></td></tr>'
            for item in items
        )
        return f'<table class="dashboard-table"><tbody>{rows}</tbody></table>'

    async def _run(self, awaitable: Awaitable[T], error_text: str) -> Result[T]:
        result = await Result.capture(awaitable)
        if not result.ok:
            logger.warning("%s: %s", error_text, result.message)
            self.notifications.error(f"{error_text}: {result.message}")
        return result
