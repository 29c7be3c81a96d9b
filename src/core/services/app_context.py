"""Wiring of the process-wide client objects.

The transport, session, region registry and resolver are explicit owned
instances handed to whoever needs them; nothing here is a module global.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from adapters.api_service import BingPaperApi
from adapters.http_client import Transport, build_async_client
from adapters.storage import JsonFileStore
from core.config import AppSettings
from core.interfaces.navigation import Navigator
from core.interfaces.storage import KeyValueStore
from core.locale import LocaleResolver, RegionRegistry, environment_locale
from core.navigation import HistoryNavigator
from core.session import AuthSession


@dataclass
class AppContext:
    settings: AppSettings
    store: KeyValueStore
    navigator: Navigator
    transport: Transport
    session: AuthSession
    api: BingPaperApi
    regions: RegionRegistry
    locale: LocaleResolver

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "AppContext":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def build_context(
    settings: AppSettings | None = None,
    *,
    store: KeyValueStore | None = None,
    navigator: Navigator | None = None,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> AppContext:
    """Build and connect every client object; restores a persisted, valid token."""

    settings = settings or AppSettings()
    store = store if store is not None else JsonFileStore(settings.resolved_state_path())
    navigator = navigator if navigator is not None else HistoryNavigator()

    client = build_async_client(settings, transport=http_transport)
    transport = Transport(settings, client=client)
    session = AuthSession(transport, store, navigator)
    transport.on_unauthorized = session.on_unauthorized
    session.restore()

    registry = RegionRegistry()
    resolver = LocaleResolver(
        registry,
        store,
        environment=lambda: environment_locale(settings.locale),
        default=settings.default_region,
    )
    return AppContext(
        settings=settings,
        store=store,
        navigator=navigator,
        transport=transport,
        session=session,
        api=BingPaperApi(transport),
        regions=registry,
        locale=resolver,
    )
