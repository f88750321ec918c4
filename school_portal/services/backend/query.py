"""PostgREST-style query parameters for the table endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


@dataclass(slots=True)
class TableQuery:
    """Collects filters and ordering, then renders them as query params.

    Each filter becomes a ``column=op.value`` pair, which is why params are
    returned as a list of tuples: the same column may be filtered twice.
    """

    select: str = "*"
    filters: list[tuple[str, str]] = field(default_factory=list)
    ordering: list[str] = field(default_factory=list)
    limit: Optional[int] = None

    def eq(self, column: str, value: Any) -> "TableQuery":
        self.filters.append((column, f"eq.{_format_value(value)}"))
        return self

    def neq(self, column: str, value: Any) -> "TableQuery":
        self.filters.append((column, f"neq.{_format_value(value)}"))
        return self

    def ilike(self, column: str, pattern: str) -> "TableQuery":
        self.filters.append((column, f"ilike.{pattern}"))
        return self

    def in_(self, column: str, values: Iterable[Any]) -> "TableQuery":
        joined = ",".join(_format_value(value) for value in values)
        self.filters.append((column, f"in.({joined})"))
        return self

    def order(self, column: str, *, descending: bool = False) -> "TableQuery":
        self.ordering.append(f"{column}.{'desc' if descending else 'asc'}")
        return self

    def take(self, limit: int) -> "TableQuery":
        self.limit = int(limit)
        return self

    def params(self) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        if self.select and self.select != "*":
            params.append(("select", self.select))
        params.extend(self.filters)
        if self.ordering:
            params.append(("order", ",".join(self.ordering)))
        if self.limit is not None:
            params.append(("limit", str(self.limit)))
        return params


def by_id(record_id: Any) -> list[tuple[str, str]]:
    return TableQuery().eq("id", record_id).params()


def parse_order(spec: str) -> tuple[str, bool]:
    """Split ``"created_at.desc"`` into ``("created_at", True)``."""
    column, _, direction = spec.partition(".")
    return column, direction.lower() == "desc"
