from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Generator, Optional, Sequence

from .base import esc

DEFAULT_CONFIRM_TITLE = "Are you sure?"
DEFAULT_CONFIRM_MESSAGE = "This action cannot be undone."


@dataclass(frozen=True, slots=True)
class ModalButton:
    label: str
    action: str
    type: str = "secondary"


class Modal:
    """A dialog whose outcome is awaited.

    Awaiting the modal yields the clicked button's action, or ``None`` when
    the backdrop is clicked.
    """

    def __init__(
        self,
        title: str,
        content: str,
        buttons: Sequence[ModalButton] = (),
        *,
        mapper: Optional[Callable[[Optional[str]], Any]] = None,
    ) -> None:
        self.title = title
        self.content = content
        self.buttons = tuple(buttons)
        self._mapper = mapper
        self._future: asyncio.Future[Optional[str]] = asyncio.get_running_loop().create_future()

    @classmethod
    def show(cls, title: str, content: str, buttons: Sequence[ModalButton] = ()) -> "Modal":
        return cls(title, content, buttons)

    @classmethod
    def confirm(cls, title: str, message: str) -> "Modal":
        return cls(
            title,
            f"<p>{esc(message)}</p>",
            (
                ModalButton("Cancel", "cancel", "secondary"),
                ModalButton("Confirm", "confirm", "primary"),
            ),
            mapper=lambda action: action == "confirm",
        )

    @classmethod
    def alert(cls, title: str, message: str) -> "Modal":
        return cls(title, f"<p>{esc(message)}</p>", (ModalButton("OK", "ok", "primary"),))

    @property
    def is_open(self) -> bool:
        return not self._future.done()

    def click(self, action: str) -> None:
        if action not in {button.action for button in self.buttons}:
            raise ValueError(f"Unknown modal action: {action}")
        self._resolve(action)

    def click_backdrop(self) -> None:
        self._resolve(None)

    close = click_backdrop

    async def wait(self) -> Any:
        action = await self._future
        return self._mapper(action) if self._mapper else action

    def __await__(self) -> Generator[Any, None, Any]:
        return self.wait().__await__()

    def render(self) -> str:
        buttons = "".join(
            f'<button class="btn btn-{esc(button.type)}" data-action="{esc(button.action)}">'
            f"{esc(button.label)}</button>"
            for button in self.buttons
        )
        return (
            '<div class="modal-overlay"><div class="modal-box">'
            f'<div class="modal-header"><h3>{esc(self.title)}</h3>'
            '<button class="modal-close">✕</button></div>'
            f'<div class="modal-body">{self.content}</div>'
            f'<div class="modal-footer">{buttons}</div>'
            "</div></div>"
        )

    def _resolve(self, action: Optional[str]) -> None:
        if not self._future.done():
            self._future.set_result(action)


class ConfirmDialog:
    """Yes/no prompt; awaiting it yields ``True`` or ``False``. Escape cancels."""

    def __init__(self, title: str = DEFAULT_CONFIRM_TITLE, message: str = DEFAULT_CONFIRM_MESSAGE) -> None:
        self.title = title
        self.message = message
        self._future: asyncio.Future[bool] = asyncio.get_running_loop().create_future()

    @classmethod
    def show(cls, title: str = DEFAULT_CONFIRM_TITLE, message: str = DEFAULT_CONFIRM_MESSAGE) -> "ConfirmDialog":
        return cls(title, message)

    @property
    def is_open(self) -> bool:
        return not self._future.done()

    def confirm(self) -> None:
        self._resolve(True)

    def cancel(self) -> None:
        self._resolve(False)

    def handle_key(self, key: str) -> None:
        if key == "Escape":
            self.cancel()

    def __await__(self) -> Generator[Any, None, bool]:
        return self._future.__await__()

    def render(self) -> str:
        state = " active" if self.is_open else ""
        return (
            f'<div class="confirm-dialog{state}">'
            f"<h3>{esc(self.title)}</h3><p>{esc(self.message)}</p>"
            '<button data-confirm="yes">Yes</button><button data-confirm="no">No</button>'
            "</div>"
        )

    def _resolve(self, value: bool) -> None:
        if not self._future.done():
            self._future.set_result(value)
