from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from school_portal.validation import sanitize_html


def esc(value: Any) -> str:
    return sanitize_html("" if value is None else value)


def get_value(item: Any, path: str) -> Any:
    """Resolve a dotted path against nested mappings or attributes."""
    current = item
    for part in path.split("."):
        if current is None:
            return None
        if isinstance(current, dict):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
    return current


@dataclass(slots=True)
class Container:
    """A named region of a page that receives rendered HTML."""

    name: str
    html: str = ""
    visible: bool = True

    def render(self, html: str) -> None:
        self.html = html

    def clear(self) -> None:
        self.html = ""

    def message(self, text: str, css_class: str = "loading") -> None:
        self.html = f'<p class="{css_class}">{esc(text)}</p>'


class ContainerRegistry:
    def __init__(self) -> None:
        self._containers: dict[str, Container] = {}

    def get(self, name: str) -> Container:
        container = self._containers.get(name)
        if container is None:
            container = Container(name)
            self._containers[name] = container
        return container

    def find(self, name: str) -> Optional[Container]:
        return self._containers.get(name)
