from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import aiohttp

from school_portal.config import Settings
from school_portal.services.auth import (
    JsonFileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    SessionManager,
)
from school_portal.services.backend import Gateways, RequestClient, build_gateways
from school_portal.ui import ContainerRegistry, NotificationCenter

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AppContext:
    """Everything a page needs, built once from settings and passed down."""

    settings: Settings
    client: RequestClient
    gateways: Gateways
    session: SessionManager
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    containers: ContainerRegistry = field(default_factory=ContainerRegistry)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        store: Optional[KeyValueStore] = None,
    ) -> "AppContext":
        client = RequestClient(
            base_url=settings.backend_url,
            api_key=settings.anon_key,
            request_timeout=settings.request_timeout,
            session=session,
        )
        gateways = build_gateways(
            client,
            default_category=settings.default_category,
            max_upload_bytes=settings.max_upload_bytes,
            upload_timeout=settings.upload_timeout,
        )
        if store is None:
            if settings.session_store_path:
                store = JsonFileKeyValueStore(settings.session_store_path)
            else:
                store = MemoryKeyValueStore()
        manager = SessionManager(
            client,
            store=store,
            secret=settings.session_secret,
            ttl_seconds=settings.session_ttl_hours * 60 * 60,
        )
        manager.restore_session()
        logger.debug("App context ready for %s", settings.backend_url)
        return cls(settings=settings, client=client, gateways=gateways, session=manager)

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "AppContext":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
