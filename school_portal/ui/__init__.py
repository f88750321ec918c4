"""Page widgets as plain view models rendering HTML fragments."""

from .base import Container, ContainerRegistry, esc, get_value
from .dialogs import ConfirmDialog, Modal, ModalButton
from .export import DataExport
from .gallery import GalleryManager
from .notifications import NotificationCenter, Toast
from .pagination import Pagination
from .search_filter import SearchFilter
from .widgets import Collapsible, ProgressTracker, Tabs

__all__ = [
    "Container",
    "ContainerRegistry",
    "esc",
    "get_value",
    "Modal",
    "ModalButton",
    "ConfirmDialog",
    "DataExport",
    "GalleryManager",
    "NotificationCenter",
    "Toast",
    "Pagination",
    "SearchFilter",
    "Tabs",
    "Collapsible",
    "ProgressTracker",
]
