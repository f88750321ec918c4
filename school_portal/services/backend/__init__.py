"""Data access for the school backend: table REST, storage and RPC."""

from .client import WRITE_ACK, RequestClient, WriteAck, is_write_ack, normalize_response
from .errors import (
    AuthenticationError,
    BackendError,
    BackendNetworkError,
    BackendParseError,
    BackendRequestError,
    ErrorKind,
    RequestTimeoutError,
    Result,
    StorageLimitError,
    ValidationError,
)
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
from .query import TableQuery
from .repository import FieldSpec, ResourceSchema, TableRepository
from .resources import (
    ActivitiesGateway,
    AnnouncementsGateway,
    CertificatesGateway,
    ContactsGateway,
    GalleryGateway,
    Gateways,
    MeetingsGateway,
    build_gateways,
)
from .storage import StorageGateway, StoredFile, create_with_upload

__all__ = [
    "RequestClient",
    "WriteAck",
    "WRITE_ACK",
    "is_write_ack",
    "normalize_response",
    "ErrorKind",
    "Result",
    "BackendError",
    "ValidationError",
    "StorageLimitError",
    "BackendNetworkError",
    "RequestTimeoutError",
    "BackendRequestError",
    "BackendParseError",
    "AuthenticationError",
    "TableQuery",
    "FieldSpec",
    "ResourceSchema",
    "TableRepository",
    "Activity",
    "Announcement",
    "GalleryItem",
    "CertificateRequest",
    "ContactMessage",
    "Meeting",
    "CERTIFICATE_STATUSES",
    "RecordId",
    "ActivitiesGateway",
    "AnnouncementsGateway",
    "GalleryGateway",
    "CertificatesGateway",
    "ContactsGateway",
    "MeetingsGateway",
    "Gateways",
    "build_gateways",
    "StorageGateway",
    "StoredFile",
    "create_with_upload",
]
