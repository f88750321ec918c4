"""Page controllers rendering into named containers."""

from .base import Page
from .dashboard import SECTIONS, DashboardController
from .forms import CertificateRequestPage, ContactPage
from .public import ActivitiesPage, AnnouncementsPage, GalleryPage, HomePage, MeetingsPage

__all__ = [
    "Page",
    "HomePage",
    "ActivitiesPage",
    "AnnouncementsPage",
    "MeetingsPage",
    "GalleryPage",
    "CertificateRequestPage",
    "ContactPage",
    "DashboardController",
    "SECTIONS",
]
