from __future__ import annotations

from typing import Iterable, Optional, Sequence

from .base import esc


class Tabs:
    """Named tabs with exactly one active; the first is active initially."""

    def __init__(self, names: Sequence[str]) -> None:
        self.names = tuple(names)
        self.active: Optional[str] = self.names[0] if self.names else None

    def switch(self, name: str) -> None:
        if name not in self.names:
            raise KeyError(f"Unknown tab: {name}")
        self.active = name

    def is_active(self, name: str) -> bool:
        return self.active == name

    def render(self) -> str:
        buttons = []
        for name in self.names:
            active = ' class="active"' if self.is_active(name) else ""
            buttons.append(f'<button data-tab="{esc(name)}"{active}>{esc(name)}</button>')
        return f'<div class="tabs">{"".join(buttons)}</div>'


class Collapsible:
    def __init__(self, sections: Iterable[str] = (), *, collapsed: bool = False) -> None:
        self._collapsed = {name: collapsed for name in sections}

    def toggle(self, name: str) -> bool:
        """Flip a section and return whether it is now collapsed."""
        self._collapsed[name] = not self._collapsed.get(name, False)
        return self._collapsed[name]

    def is_collapsed(self, name: str) -> bool:
        return self._collapsed.get(name, False)


class ProgressTracker:
    def __init__(self, value: float = 0, maximum: float = 100) -> None:
        if maximum <= 0:
            raise ValueError("maximum must be positive")
        self.max = maximum
        self.value = min(value, maximum)

    @property
    def percentage(self) -> float:
        return self.value / self.max * 100

    def update(self, value: float) -> None:
        self.value = min(value, self.max)

    def increment(self, amount: float = 1) -> None:
        self.update(self.value + amount)

    def complete(self) -> None:
        self.update(self.max)

    def render(self) -> str:
        percentage = self.percentage
        return (
            '<div class="progress-container"><div class="progress-bar">'
            f'<div class="progress-bar-fill" style="width: {percentage}%"></div></div>'
            f'<div class="progress-text"><span class="progress-value">{round(percentage)}%</span></div>'
            "</div>"
        )
