from __future__ import annotations

import csv
import io
import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

logger = logging.getLogger(__name__)


def _as_row(item: Any) -> dict[str, Any]:
    if isinstance(item, Mapping):
        return dict(item)
    to_dict = getattr(item, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Cannot export {type(item).__name__}")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class DataExport:
    @staticmethod
    def escape_csv(value: Any) -> str:
        text = _cell(value)
        if not text:
            return ""
        buffer = io.StringIO()
        csv.writer(buffer, lineterminator="\n").writerow([text])
        return buffer.getvalue()[:-1]

    @classmethod
    def to_csv(cls, items: Iterable[Any], columns: Optional[Sequence[str]] = None) -> str:
        """Header row comes from ``columns`` or the first item's keys."""
        rows = [_as_row(item) for item in items]
        if not rows:
            return ""
        headers = list(columns) if columns else list(rows[0].keys())
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=headers, lineterminator="\n", extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow({header: _cell(row.get(header)) for header in headers})
        return buffer.getvalue()

    @staticmethod
    def to_json(items: Iterable[Any]) -> str:
        rows = [_as_row(item) for item in items]
        return json.dumps(rows, ensure_ascii=False, indent=2, default=_json_default)

    @classmethod
    def write(
        cls,
        items: Iterable[Any],
        path: Union[str, Path],
        *,
        format: str = "csv",
        columns: Optional[Sequence[str]] = None,
    ) -> Path:
        if format == "csv":
            content = cls.to_csv(items, columns)
        elif format == "json":
            content = cls.to_json(items)
        else:
            raise ValueError(f"Unsupported export format: {format}")
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        # Keep a BOM so spreadsheet apps detect UTF-8 Arabic text.
        target.write_text(content, encoding="utf-8-sig" if format == "csv" else "utf-8")
        logger.info("Exported data to %s", target)
        return target
