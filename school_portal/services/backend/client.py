from __future__ import annotations

import asyncio
import json as jsonlib
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

import aiohttp

from .errors import (
    BackendNetworkError,
    BackendParseError,
    BackendRequestError,
    RequestTimeoutError,
)

logger = logging.getLogger(__name__)

Params = Union[dict[str, Any], Sequence[tuple[str, str]], None]


@dataclass(frozen=True, slots=True)
class WriteAck:
    """Returned when a write succeeded but the backend sent no body."""

    success: bool = True


WRITE_ACK = WriteAck()


def is_write_ack(value: Any) -> bool:
    return isinstance(value, WriteAck)


def _server_message(text: str) -> Optional[str]:
    if not text:
        return None
    try:
        payload = jsonlib.loads(text)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    for key in ("message", "error_description", "msg", "error"):
        value = payload.get(key)
        if value:
            return str(value)
    return None


def normalize_response(status: int, text: str, *, reason: str = "", label: str = "") -> Any:
    """Turn a raw HTTP status and body into the value callers receive.

    204 gives ``None``, an empty successful body gives ``WRITE_ACK``,
    anything else is decoded as JSON. Non-2xx statuses raise.
    """
    if status < 200 or status >= 300:
        server_message = _server_message(text)
        detail = server_message or reason or f"HTTP {status}"
        raise BackendRequestError(
            status,
            f"API Error {status}: {detail}",
            text,
            server_message=server_message,
        )
    if status == 204:
        return None
    if not text or not text.strip():
        return WRITE_ACK
    try:
        return jsonlib.loads(text)
    except ValueError as exc:
        if status == 201:
            return WRITE_ACK
        raise BackendParseError(f"Malformed JSON in response to {label or 'request'}: {exc}", text) from exc


class RequestClient:
    """Thin wrapper over the backend's table REST, RPC and storage endpoints."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        request_timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        if not base_url:
            raise ValueError("Backend base URL is required")
        if not (api_key or "").strip():
            raise ValueError("Backend api_key is required")
        if request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

        self._base_url = base_url.rstrip("/")
        self._api_key = api_key.strip()
        self._timeout = float(request_timeout)
        self._session = session
        self._owns_session = session is None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "RequestClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Params = None,
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        url = f"{self._base_url}/rest/v1/{path.lstrip('/')}"
        body = jsonlib.dumps(json) if json is not None else None
        return await self._request(
            method,
            url,
            params=params,
            data=body,
            headers=self._headers(extra=headers),
            timeout=timeout,
        )

    async def rpc(self, function: str, payload: dict[str, Any]) -> Any:
        return await self.request("POST", f"rpc/{function}", json=payload)

    async def storage_request(
        self,
        method: str,
        bucket: str,
        name: str,
        *,
        data: Optional[bytes] = None,
        content_type: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        url = f"{self._base_url}/storage/v1/object/{bucket}/{name}"
        return await self._request(
            method,
            url,
            data=data,
            headers=self._headers(content_type=content_type or "application/octet-stream"),
            timeout=timeout,
        )

    def storage_public_url(self, bucket: str, name: str) -> str:
        return f"{self._base_url}/storage/v1/object/public/{bucket}/{name}"

    def _headers(
        self,
        *,
        extra: Optional[dict[str, str]] = None,
        content_type: str = "application/json",
    ) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": content_type,
        }
        if extra:
            headers.update(extra)
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Params = None,
        data: Any = None,
        headers: dict[str, str],
        timeout: Optional[float] = None,
    ) -> Any:
        wait = self._timeout if timeout is None else float(timeout)
        label = f"{method} {url}"
        try:
            status, text, reason = await asyncio.wait_for(
                self._perform(method, url, params=params, data=data, headers=headers),
                timeout=wait,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("Backend request %s timed out after %.1fs", label, wait)
            raise RequestTimeoutError(
                f"Backend request {label} timed out after {wait:g}s",
                timeout=wait,
            ) from exc
        except aiohttp.ClientError as exc:
            logger.warning("Backend request %s failed: %s", label, exc)
            raise BackendNetworkError(f"Backend request {label} failed: {exc}") from exc

        try:
            return normalize_response(status, text, reason=reason, label=label)
        except BackendRequestError as exc:
            logger.warning("Backend request %s failed with %s: %s", label, exc.status, exc.server_message or "")
            raise
        except BackendParseError:
            logger.exception("Backend request %s returned malformed JSON", label)
            raise

    async def _perform(
        self,
        method: str,
        url: str,
        *,
        params: Params,
        data: Any,
        headers: dict[str, str],
    ) -> tuple[int, str, str]:
        session = self._get_session()
        async with session.request(
            method,
            url,
            params=params,
            data=data,
            headers=headers,
        ) as response:
            text = await response.text()
            return response.status, text, response.reason or ""
