"""Public holiday lookup (auxiliary, outside the core API).

Fails soft: any network, HTTP or payload problem yields `None` and a log
line, never an exception. Successful years are cached in-process.
"""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import HolidayDay, Holidays
from core.logger import get_logger

logger = get_logger("holidays")


class HolidayService:
    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client
        self._cache: dict[int, Holidays] = {}

    def _url(self, year: int) -> str:
        return f"{self._settings.holiday_api_url.rstrip('/')}/{year}.json"

    async def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url)
        async with build_async_client(self._settings) as client:
            return await client.get(url)

    async def get_holidays_by_year(self, year: int) -> Holidays | None:
        if year in self._cache:
            return self._cache[year]

        url = self._url(year)
        try:
            resp = await self._get(url)
        except httpx.HTTPError as e:
            logger.error("Holiday lookup for %s failed: %s", year, e)
            return None

        if resp.status_code != 200:
            logger.warning("Holiday lookup for %s returned HTTP %s", year, resp.status_code)
            return None

        try:
            holidays = Holidays.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            logger.error("Holiday payload for %s invalid: %s", year, e)
            return None

        self._cache[year] = holidays
        return holidays

    def clear_cache(self) -> None:
        self._cache.clear()


def get_holiday_by_date(holidays: Holidays | None, date: str) -> HolidayDay | None:
    if holidays is None:
        return None
    for day in holidays.days:
        if day.date == date:
            return day
    return None
