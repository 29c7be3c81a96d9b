"""Shared fixtures: settings without env files and a mock-backed transport."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from adapters.api_service import BingPaperApi
from adapters.http_client import Transport, build_async_client
from adapters.storage import MemoryStore
from core.config import AppSettings

API_ROOT = "http://api.test/api/v1"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(_env_file=None, api_base_url=API_ROOT, http_timeout_seconds=2.0)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def make_transport(settings: AppSettings) -> Callable[[Handler], Transport]:
    def factory(handler: Handler) -> Transport:
        client = build_async_client(settings, transport=httpx.MockTransport(handler))
        return Transport(settings, client=client)

    return factory


@pytest.fixture
def make_api(make_transport: Callable[[Handler], Transport]) -> Callable[[Handler], BingPaperApi]:
    def factory(handler: Handler) -> BingPaperApi:
        return BingPaperApi(make_transport(handler))

    return factory
