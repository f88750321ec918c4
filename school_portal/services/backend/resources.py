from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from school_portal.validation import validate_email, validate_massar_number

from .client import RequestClient, WriteAck
from .errors import ValidationError
from .models import (
    CERTIFICATE_STATUSES,
    Activity,
    Announcement,
    CertificateRequest,
    ContactMessage,
    GalleryItem,
    Meeting,
    RecordId,
)
from .repository import FieldSpec, ResourceSchema, TableRepository, utcnow_iso
from .storage import StorageGateway

logger = logging.getLogger(__name__)

DEFAULT_ANNOUNCEMENT_CATEGORY = "عام"


def _check_massar(fields: Mapping[str, Any]) -> None:
    if not validate_massar_number(fields.get("massar_number")):
        raise ValidationError("massar_number must be 11 digits", field="massar_number")


def _check_email(fields: Mapping[str, Any]) -> None:
    if not validate_email(fields.get("email")):
        raise ValidationError("Invalid email format", field="email")


ACTIVITIES = ResourceSchema(
    table="activities",
    record_type=Activity.from_payload,
    fields=(
        FieldSpec("title", max_length=255),
        FieldSpec("description", max_length=5000),
        FieldSpec("date", default=utcnow_iso),
        FieldSpec("image_url", max_length=2048),
    ),
    required=("title", "description"),
    stamp_updated=True,
)

GALLERY = ResourceSchema(
    table="gallery",
    record_type=GalleryItem.from_payload,
    fields=(
        FieldSpec("title", max_length=255),
        FieldSpec("description", max_length=1000),
        FieldSpec("image_url", max_length=2048),
        FieldSpec("order_index", kind="int", default=0),
    ),
    order="order_index.asc",
    required=("title", "image_url"),
)

CERTIFICATES = ResourceSchema(
    table="certificate_requests",
    record_type=CertificateRequest.from_payload,
    fields=(
        FieldSpec("first_name", max_length=100),
        FieldSpec("last_name", max_length=100),
        FieldSpec("massar_number", max_length=50),
        FieldSpec("submission_date", max_length=32),
        FieldSpec("birth_date", max_length=32),
        FieldSpec("notes", max_length=1000),
    ),
    required=("first_name", "last_name", "massar_number", "submission_date"),
    forced={"status": "pending"},
    validators=(_check_massar,),
    stamp_updated=True,
)

CONTACTS = ResourceSchema(
    table="contacts",
    record_type=ContactMessage.from_payload,
    fields=(
        FieldSpec("name", max_length=100),
        FieldSpec("email", max_length=100),
        FieldSpec("phone", max_length=20),
        FieldSpec("subject", max_length=255),
        FieldSpec("message", max_length=5000),
    ),
    required=("name", "email", "subject", "message"),
    forced={"is_read": False},
    validators=(_check_email,),
    capabilities=frozenset({"list", "get", "create", "delete"}),
)

MEETINGS = ResourceSchema(
    table="meetings",
    record_type=Meeting.from_payload,
    fields=(
        FieldSpec("subject", max_length=255),
        FieldSpec("meeting_date", max_length=64),
        FieldSpec("location", max_length=255),
        FieldSpec("description", max_length=5000),
    ),
    required=("subject", "meeting_date"),
)


def announcements_schema(default_category: str = DEFAULT_ANNOUNCEMENT_CATEGORY) -> ResourceSchema[Announcement]:
    return ResourceSchema(
        table="announcements",
        record_type=Announcement.from_payload,
        fields=(
            FieldSpec("title", max_length=255),
            FieldSpec("content", max_length=5000),
            FieldSpec("category", max_length=100, default=default_category),
            FieldSpec("file_url", max_length=2048),
        ),
        required=("title", "content"),
        capabilities=frozenset({"list", "get", "create", "delete"}),
    )


ANNOUNCEMENTS = announcements_schema()


class ActivitiesGateway(TableRepository[Activity]):
    def __init__(self, client: RequestClient, **kwargs: Any) -> None:
        super().__init__(client, ACTIVITIES, **kwargs)


class AnnouncementsGateway(TableRepository[Announcement]):
    def __init__(
        self,
        client: RequestClient,
        *,
        default_category: str = DEFAULT_ANNOUNCEMENT_CATEGORY,
        **kwargs: Any,
    ) -> None:
        super().__init__(client, announcements_schema(default_category), **kwargs)


class GalleryGateway(TableRepository[GalleryItem]):
    def __init__(self, client: RequestClient, **kwargs: Any) -> None:
        super().__init__(client, GALLERY, **kwargs)


class CertificatesGateway(TableRepository[CertificateRequest]):
    def __init__(self, client: RequestClient, **kwargs: Any) -> None:
        super().__init__(client, CERTIFICATES, **kwargs)

    async def update_status(
        self,
        record_id: RecordId,
        status: str,
        notes: str = "",
    ) -> Union[CertificateRequest, WriteAck, None]:
        if status not in CERTIFICATE_STATUSES:
            raise ValidationError(
                f"Invalid status {status!r}; expected one of {', '.join(CERTIFICATE_STATUSES)}",
                field="status",
            )
        payload = {
            "status": status,
            "notes": str(notes)[:1000] if notes else None,
            "updated_at": self._clock(),
        }
        logger.info("Setting certificate request id=%s status=%s", record_id, status)
        return await self._patch(record_id, payload)


class ContactsGateway(TableRepository[ContactMessage]):
    def __init__(self, client: RequestClient, **kwargs: Any) -> None:
        super().__init__(client, CONTACTS, **kwargs)

    async def mark_as_read(self, record_id: RecordId) -> Union[ContactMessage, WriteAck, None]:
        return await self._patch(record_id, {"is_read": True})


class MeetingsGateway(TableRepository[Meeting]):
    def __init__(self, client: RequestClient, **kwargs: Any) -> None:
        super().__init__(client, MEETINGS, **kwargs)


@dataclass(slots=True)
class Gateways:
    activities: ActivitiesGateway
    announcements: AnnouncementsGateway
    gallery: GalleryGateway
    certificates: CertificatesGateway
    contacts: ContactsGateway
    meetings: MeetingsGateway
    storage: StorageGateway

    def by_table(self, table: str) -> TableRepository[Any]:
        for repository in self.repositories():
            if repository.table == table:
                return repository
        raise KeyError(f"Unknown table: {table}")

    def repositories(self) -> Sequence[TableRepository[Any]]:
        return (
            self.activities,
            self.announcements,
            self.gallery,
            self.certificates,
            self.contacts,
            self.meetings,
        )


def build_gateways(
    client: RequestClient,
    *,
    default_category: str = DEFAULT_ANNOUNCEMENT_CATEGORY,
    max_upload_bytes: int = 10 * 1024 * 1024,
    upload_timeout: Optional[float] = None,
    clock: Callable[[], str] = utcnow_iso,
) -> Gateways:
    return Gateways(
        activities=ActivitiesGateway(client, clock=clock),
        announcements=AnnouncementsGateway(client, default_category=default_category, clock=clock),
        gallery=GalleryGateway(client, clock=clock),
        certificates=CertificatesGateway(client, clock=clock),
        contacts=ContactsGateway(client, clock=clock),
        meetings=MeetingsGateway(client, clock=clock),
        storage=StorageGateway(client, max_upload_bytes=max_upload_bytes, upload_timeout=upload_timeout),
    )
