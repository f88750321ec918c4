from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Generic, Mapping, Optional, TypeVar, Union

from .client import WRITE_ACK, RequestClient, WriteAck, is_write_ack
from .errors import BackendError, ValidationError
from .query import TableQuery, by_id, parse_order

logger = logging.getLogger(__name__)

R = TypeVar("R")
RecordId = Union[int, str]

ALL_CAPABILITIES = frozenset({"list", "get", "create", "update", "delete"})


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """How one column is shaped before it is sent.

    ``kind`` is one of ``str``, ``int``, ``bool`` or ``raw``. ``default`` may
    be a callable; it is only applied on create when the value is absent.
    """

    name: str
    max_length: Optional[int] = None
    kind: str = "str"
    default: Any = None

    def shape(self, value: Any) -> Any:
        if value is None:
            return None
        if self.kind == "str":
            if isinstance(value, (datetime, date)):
                value = value.isoformat()
            text = str(value)
            if not text:
                return None
            if self.max_length is not None:
                text = text[: self.max_length]
            return text
        if self.kind == "int":
            if isinstance(value, bool):
                raise ValidationError(f"{self.name} must be an integer", field=self.name)
            try:
                return int(value)
            except (TypeError, ValueError) as exc:
                raise ValidationError(f"{self.name} must be an integer", field=self.name) from exc
        if self.kind == "bool":
            return bool(value)
        return value

    def default_value(self) -> Any:
        return self.default() if callable(self.default) else self.default


@dataclass(frozen=True)
class ResourceSchema(Generic[R]):
    """Declarative description of one backend table."""

    table: str
    record_type: Callable[[dict[str, Any]], R]
    fields: tuple[FieldSpec, ...]
    order: str = "created_at.desc"
    required: tuple[str, ...] = ()
    forced: Mapping[str, Any] = field(default_factory=dict)
    validators: tuple[Callable[[Mapping[str, Any]], None], ...] = ()
    stamp_created: bool = True
    stamp_updated: bool = False
    capabilities: frozenset[str] = ALL_CAPABILITIES

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    def spec_for(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None


class TableRepository(Generic[R]):
    """List/get/create/update/delete over one table, shaped by a schema.

    Every method raises ``BackendError`` subclasses on failure; deciding
    whether to fall back to an empty result is left to the caller (see
    ``Result.capture``).
    """

    def __init__(
        self,
        client: RequestClient,
        schema: ResourceSchema[R],
        *,
        clock: Callable[[], str] = utcnow_iso,
    ) -> None:
        self._client = client
        self._schema = schema
        self._clock = clock

    @property
    def schema(self) -> ResourceSchema[R]:
        return self._schema

    @property
    def table(self) -> str:
        return self._schema.table

    async def list(self, query: Optional[TableQuery] = None) -> list[R]:
        self._require("list")
        if query is None:
            column, descending = parse_order(self._schema.order)
            query = TableQuery().order(column, descending=descending)
        try:
            payload = await self._client.request("GET", self.table, params=query.params())
        except BackendError as exc:
            logger.error("Failed to fetch %s: %s", self.table, exc)
            raise
        return self._parse_rows(payload)

    get_all = list

    async def get(self, record_id: RecordId) -> Optional[R]:
        self._require("get")
        try:
            payload = await self._client.request("GET", self.table, params=by_id(record_id))
        except BackendError as exc:
            logger.error("Failed to fetch %s id=%s: %s", self.table, record_id, exc)
            raise
        rows = self._parse_rows(payload)
        return rows[0] if rows else None

    async def create(self, fields: Mapping[str, Any]) -> Union[R, WriteAck]:
        self._require("create")
        payload = self.prepare_create(fields)
        try:
            response = await self._client.request(
                "POST",
                self.table,
                json=payload,
                headers={"Prefer": "return=representation"},
            )
        except BackendError as exc:
            logger.error("Failed to create %s record: %s", self.table, exc)
            raise
        record = self._first_or_ack(response)
        return record if record is not None else WRITE_ACK

    async def update(self, record_id: RecordId, fields: Mapping[str, Any]) -> Union[R, WriteAck, None]:
        self._require("update")
        payload = self.prepare_update(fields)
        return await self._patch(record_id, payload)

    async def delete(self, record_id: RecordId) -> None:
        self._require("delete")
        try:
            await self._client.request("DELETE", self.table, params=by_id(record_id))
        except BackendError as exc:
            logger.error("Failed to delete %s id=%s: %s", self.table, record_id, exc)
            raise
        logger.info("Deleted %s id=%s", self.table, record_id)

    def prepare_create(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        schema = self._schema
        for name in schema.required:
            if is_blank(fields.get(name)):
                raise ValidationError(f"{name} is required", field=name)
        for validator in schema.validators:
            validator(fields)

        payload: dict[str, Any] = {}
        for spec in schema.fields:
            value = fields.get(spec.name)
            if is_blank(value) and spec.default is not None:
                value = spec.default_value()
            payload[spec.name] = spec.shape(value)
        payload.update(schema.forced)
        now = self._clock()
        if schema.stamp_created:
            payload["created_at"] = now
        if schema.stamp_updated:
            payload["updated_at"] = now
        return payload

    def prepare_update(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for name, value in fields.items():
            spec = self._schema.spec_for(name)
            if spec is None:
                continue
            payload[name] = spec.shape(value)
        if not payload:
            raise ValidationError(f"No updatable {self.table} fields supplied")
        if self._schema.stamp_updated:
            payload["updated_at"] = self._clock()
        return payload

    async def _patch(self, record_id: RecordId, payload: dict[str, Any]) -> Union[R, WriteAck, None]:
        try:
            response = await self._client.request(
                "PATCH",
                self.table,
                params=by_id(record_id),
                json=payload,
                headers={"Prefer": "return=representation"},
            )
        except BackendError as exc:
            logger.error("Failed to update %s id=%s: %s", self.table, record_id, exc)
            raise
        if response is None or is_write_ack(response):
            return response
        return self._first_or_ack(response)

    def _require(self, capability: str) -> None:
        if capability not in self._schema.capabilities:
            raise ValidationError(f"{self.table} does not support {capability}")

    def _first_or_ack(self, response: Any) -> Optional[R]:
        if response is None or is_write_ack(response):
            return None
        rows = self._parse_rows(response if isinstance(response, list) else [response])
        return rows[0] if rows else None

    def _parse_rows(self, payload: Any) -> list[R]:
        if payload is None or is_write_ack(payload):
            return []
        if not isinstance(payload, list):
            payload = [payload]
        records: list[R] = []
        for item in payload:
            try:
                records.append(self._schema.record_type(item))
            except Exception as exc:  # pragma: no cover
                logger.exception("Failed to parse %s row: %s", self.table, exc)
        return records
