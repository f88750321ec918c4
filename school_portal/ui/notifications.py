from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .base import esc

logger = logging.getLogger(__name__)

ICONS = {
    "success": "✓",
    "error": "✕",
    "warning": "⚠",
    "info": "ℹ",
}
TOAST_TYPES = tuple(ICONS)

_ids = itertools.count(1)


@dataclass(slots=True)
class Toast:
    """One notification. ``duration`` is in seconds; 0 keeps it until closed."""

    message: str
    type: str = "info"
    duration: float = 3.0
    title: Optional[str] = None
    created_at: float = 0.0
    id: str = field(default_factory=lambda: f"toast-{next(_ids)}")
    dismissed: bool = False

    def __post_init__(self) -> None:
        if self.type not in ICONS:
            self.type = "info"

    @property
    def icon(self) -> str:
        return ICONS.get(self.type, ICONS["info"])

    def expires_at(self) -> Optional[float]:
        if self.duration <= 0:
            return None
        return self.created_at + self.duration

    def is_visible(self, now: float) -> bool:
        if self.dismissed:
            return False
        expiry = self.expires_at()
        return expiry is None or now < expiry

    def close(self) -> None:
        self.dismissed = True

    def render(self) -> str:
        title = f'<div class="toast-title">{esc(self.title)}</div>' if self.title else ""
        return (
            f'<div class="toast toast-{self.type}" id="{self.id}">'
            f'<div class="toast-content"><span class="toast-icon">{self.icon}</span>'
            f'{title}<span class="toast-message">{esc(self.message)}</span></div>'
            f'<button class="toast-close" data-dismiss="{self.id}">✕</button>'
            "</div>"
        )


class NotificationCenter:
    """Keeps the visible toasts for one page, evicting the oldest past the limit."""

    def __init__(
        self,
        *,
        max_notifications: int = 5,
        default_duration: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max = max_notifications
        self._default_duration = default_duration
        self._clock = clock
        self._toasts: list[Toast] = []

    def notify(
        self,
        message: str,
        type: str = "info",
        duration: Optional[float] = None,
        *,
        title: Optional[str] = None,
    ) -> Toast:
        toast = Toast(
            message=message,
            type=type,
            duration=self._default_duration if duration is None else duration,
            title=title,
            created_at=self._clock(),
        )
        self._prune()
        if len(self._toasts) >= self._max:
            oldest = self._toasts.pop(0)
            oldest.close()
        self._toasts.append(toast)
        if toast.type == "error":
            logger.info("Error notification shown: %s", message)
        return toast

    def success(self, message: str, **kwargs) -> Toast:
        return self.notify(message, "success", **kwargs)

    def error(self, message: str, **kwargs) -> Toast:
        return self.notify(message, "error", **kwargs)

    def warning(self, message: str, **kwargs) -> Toast:
        return self.notify(message, "warning", **kwargs)

    def info(self, message: str, **kwargs) -> Toast:
        return self.notify(message, "info", **kwargs)

    def dismiss(self, toast_id: str) -> bool:
        for toast in self._toasts:
            if toast.id == toast_id:
                toast.close()
                self._toasts.remove(toast)
                return True
        return False

    def visible(self) -> list[Toast]:
        self._prune()
        return list(self._toasts)

    def render(self) -> str:
        items = "".join(toast.render() for toast in self.visible())
        return f'<div class="notification-center">{items}</div>'

    def _prune(self) -> None:
        now = self._clock()
        self._toasts = [toast for toast in self._toasts if toast.is_visible(now)]
