from __future__ import annotations

import asyncio
import logging
import math
import secrets
import string
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from school_portal.services.backend.models import parse_iso_datetime

logger = logging.getLogger(__name__)

T = TypeVar("T")

INVALID_DATE = "Invalid date"
_ID_ALPHABET = string.ascii_lowercase + string.digits


def format_date(value: Any, fmt: str = "DD/MM/YYYY") -> str:
    """Render a date with ``DD``, ``MM``, ``YYYY``, ``HH`` and ``mm`` tokens."""
    parsed = parse_iso_datetime(value)
    if parsed is None:
        return INVALID_DATE
    return (
        fmt.replace("DD", f"{parsed.day:02d}")
        .replace("MM", f"{parsed.month:02d}")
        .replace("YYYY", str(parsed.year))
        .replace("HH", f"{parsed.hour:02d}")
        .replace("mm", f"{parsed.minute:02d}")
    )


def truncate_text(text: Optional[str], length: int = 100, suffix: str = "...") -> str:
    if not text:
        return ""
    if len(text) <= length:
        return text
    return text[:length].strip() + suffix


def format_bytes(size: int, decimals: int = 2) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    index = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / 1024**index, max(decimals, 0))
    if value == int(value):
        value = int(value)
    return f"{value} {units[index]}"


def generate_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}_{suffix}"


async def retry_async(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    delay: float = 1.0,
) -> T:
    """Retry ``func`` with exponential backoff, re-raising the last failure.

    The CLI opts in with ``--retry``; other call paths fail on the first error.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    for attempt in range(attempts - 1):
        try:
            return await func()
        except Exception as exc:
            wait = delay * (2**attempt)
            logger.warning("Attempt %s/%s failed (%s); retrying in %.1fs", attempt + 1, attempts, exc, wait)
            await asyncio.sleep(wait)
    return await func()


def debounce(func: Callable[..., Any], wait: float = 0.3) -> Callable[..., None]:
    """Delay ``func`` until ``wait`` seconds pass without another call."""
    handle: Optional[asyncio.TimerHandle] = None

    def debounced(*args: Any) -> None:
        nonlocal handle
        if handle is not None:
            handle.cancel()
        handle = asyncio.get_running_loop().call_later(wait, func, *args)

    return debounced


def throttle(
    func: Callable[..., T],
    limit: float = 0.3,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> Callable[..., Optional[T]]:
    """Run ``func`` at most once per ``limit`` seconds; extra calls are dropped."""
    last_call: Optional[float] = None

    def throttled(*args: Any) -> Optional[T]:
        nonlocal last_call
        now = clock()
        if last_call is not None and now - last_call < limit:
            return None
        last_call = now
        return func(*args)

    return throttled
