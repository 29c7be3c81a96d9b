"""
Tests for HolidayService: caching and fail-soft behaviour.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from adapters.holiday_service import HolidayService, get_holiday_by_date
from core.config import AppSettings
from core.domain.models import Holidays

PAYLOAD = {
    "year": 2024,
    "papers": ["http://www.gov.cn/zhengce/content/2023-10/25/content_6911527.htm"],
    "days": [
        {"name": "元旦", "date": "2024-01-01", "isOffDay": True},
        {"name": "春节", "date": "2024-02-04", "isOffDay": False},
    ],
}


@pytest.fixture
def holiday_settings() -> AppSettings:
    return AppSettings(_env_file=None, holiday_api_url="https://holidays.test/cn/")


def _service(settings: AppSettings, handler) -> HolidayService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HolidayService(settings, client=client)


def test_year_is_fetched_once_and_cached(holiday_settings: AppSettings) -> None:
    urls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        return httpx.Response(200, json=PAYLOAD)

    service = _service(holiday_settings, handler)

    async def scenario():
        return await service.get_holidays_by_year(2024), await service.get_holidays_by_year(2024)

    first, second = asyncio.run(scenario())

    assert urls == ["https://holidays.test/cn/2024.json"]
    assert first is second
    assert first is not None and first.days[0].is_off_day is True


def test_clear_cache_forces_refetch(holiday_settings: AppSettings) -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200, json=PAYLOAD)

    service = _service(holiday_settings, handler)

    asyncio.run(service.get_holidays_by_year(2024))
    service.clear_cache()
    asyncio.run(service.get_holidays_by_year(2024))

    assert len(calls) == 2


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="oops"),
        httpx.Response(200, content=b"<html>", headers={"content-type": "text/html"}),
        httpx.Response(200, json={"days": "nope"}),
    ],
)
def test_bad_responses_yield_none(holiday_settings: AppSettings, response: httpx.Response) -> None:
    service = _service(holiday_settings, lambda request: response)

    assert asyncio.run(service.get_holidays_by_year(2024)) is None


def test_network_error_yields_none(holiday_settings: AppSettings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("dns failure", request=request)

    service = _service(holiday_settings, handler)

    assert asyncio.run(service.get_holidays_by_year(2025)) is None


def test_get_holiday_by_date() -> None:
    holidays = Holidays.model_validate(PAYLOAD)

    found = get_holiday_by_date(holidays, "2024-02-04")
    assert found is not None and found.name == "春节" and found.is_off_day is False
    assert get_holiday_by_date(holidays, "2024-03-01") is None
    assert get_holiday_by_date(None, "2024-01-01") is None
