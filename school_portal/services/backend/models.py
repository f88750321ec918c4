from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Optional, Union

RecordId = Union[int, str]

CERTIFICATE_STATUSES = ("pending", "approved", "rejected", "completed")


def parse_iso_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value else None


def _record_id(value: Any) -> Optional[RecordId]:
    if value is None or isinstance(value, int):
        return value
    text = str(value)
    return int(text) if text.isdigit() else text


class Record:
    """Mixin giving table records a JSON-friendly dict view."""

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)  # type: ignore[call-overload]
        for key, value in data.items():
            if isinstance(value, (datetime, date)):
                data[key] = value.isoformat()
        return data


@dataclass(slots=True)
class Activity(Record):
    id: Optional[RecordId]
    title: str
    description: str
    date: Optional[datetime]
    image_url: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Activity":
        return cls(
            id=_record_id(data.get("id")),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            date=parse_iso_datetime(data.get("date")),
            image_url=_optional_str(data.get("image_url")),
            created_at=parse_iso_datetime(data.get("created_at")),
            updated_at=parse_iso_datetime(data.get("updated_at")),
        )


@dataclass(slots=True)
class Announcement(Record):
    id: Optional[RecordId]
    title: str
    content: str
    category: str
    file_url: Optional[str]
    created_at: Optional[datetime]

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Announcement":
        return cls(
            id=_record_id(data.get("id")),
            title=str(data.get("title") or ""),
            content=str(data.get("content") or ""),
            category=str(data.get("category") or ""),
            file_url=_optional_str(data.get("file_url")),
            created_at=parse_iso_datetime(data.get("created_at")),
        )


@dataclass(slots=True)
class GalleryItem(Record):
    id: Optional[RecordId]
    title: str
    description: Optional[str]
    image_url: str
    order_index: int
    created_at: Optional[datetime]

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "GalleryItem":
        return cls(
            id=_record_id(data.get("id")),
            title=str(data.get("title") or ""),
            description=_optional_str(data.get("description")),
            image_url=str(data.get("image_url") or ""),
            order_index=int(data.get("order_index") or 0),
            created_at=parse_iso_datetime(data.get("created_at")),
        )


@dataclass(slots=True)
class CertificateRequest(Record):
    id: Optional[RecordId]
    first_name: str
    last_name: str
    massar_number: str
    submission_date: Optional[date]
    birth_date: Optional[date]
    status: str
    notes: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "CertificateRequest":
        return cls(
            id=_record_id(data.get("id")),
            first_name=str(data.get("first_name") or ""),
            last_name=str(data.get("last_name") or ""),
            massar_number=str(data.get("massar_number") or ""),
            submission_date=parse_iso_date(data.get("submission_date")),
            birth_date=parse_iso_date(data.get("birth_date")),
            status=str(data.get("status") or "pending"),
            notes=_optional_str(data.get("notes")),
            created_at=parse_iso_datetime(data.get("created_at")),
            updated_at=parse_iso_datetime(data.get("updated_at")),
        )


@dataclass(slots=True)
class ContactMessage(Record):
    id: Optional[RecordId]
    name: str
    email: str
    phone: Optional[str]
    subject: str
    message: str
    is_read: bool
    created_at: Optional[datetime]

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ContactMessage":
        return cls(
            id=_record_id(data.get("id")),
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            phone=_optional_str(data.get("phone")),
            subject=str(data.get("subject") or ""),
            message=str(data.get("message") or ""),
            is_read=bool(data.get("is_read", False)),
            created_at=parse_iso_datetime(data.get("created_at")),
        )


@dataclass(slots=True)
class Meeting(Record):
    id: Optional[RecordId]
    subject: str
    meeting_date: Optional[datetime]
    location: Optional[str]
    description: Optional[str]
    created_at: Optional[datetime]

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Meeting":
        return cls(
            id=_record_id(data.get("id")),
            subject=str(data.get("subject") or ""),
            meeting_date=parse_iso_datetime(data.get("meeting_date")),
            location=_optional_str(data.get("location")),
            description=_optional_str(data.get("description")),
            created_at=parse_iso_datetime(data.get("created_at")),
        )
