from __future__ import annotations

import logging
from typing import Awaitable, TypeVar

from school_portal.context import AppContext
from school_portal.services.backend import Result
from school_portal.ui import Container

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOADING = "Loading..."
EMPTY = "Nothing to show yet"


class Page:
    """Base for public pages: failures become a message in the container."""

    def __init__(self, ctx: AppContext) -> None:
        self.ctx = ctx

    def container(self, name: str) -> Container:
        return self.ctx.containers.get(name)

    async def fetch(self, awaitable: Awaitable[T], target: Container, error_text: str) -> Result[T]:
        target.message(LOADING)
        result = await Result.capture(awaitable)
        if not result.ok:
            logger.warning("%s: %s", error_text, result.message)
            target.message(error_text, "error")
        return result
