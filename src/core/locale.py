"""Region registry and locale resolution.

`RegionRegistry` owns the replaceable list of supported regions (refreshed
from the backend when available). `LocaleResolver` picks the effective
region, reading the registry at call time:

1. explicit override
2. persisted preference, if still supported
3. exact, case-insensitive match of the environment locale
4. language-prefix match (registry order breaks ties)
5. fixed default
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Callable, Iterable, Sequence

from core.domain.errors import ApiError
from core.domain.models import Region
from core.domain.regions import DEFAULT_MKT, DEFAULT_REGIONS, language_subtag
from core.interfaces.storage import REGION_KEY, KeyValueStore
from core.logger import get_logger

if TYPE_CHECKING:
    from adapters.api_service import BingPaperApi

logger = get_logger("locale")

_LOCALE_ENV_VARS = ("LC_ALL", "LC_MESSAGES", "LANG")


def default_regions() -> list[Region]:
    return [Region(value=value, label=label) for value, label in DEFAULT_REGIONS]


def normalize_locale(value: str | None) -> str | None:
    """`en_GB.UTF-8` -> `en-GB`; `C`/`POSIX`/empty -> None."""

    if not value:
        return None
    text = value.split(".", 1)[0].split("@", 1)[0].strip().replace("_", "-")
    if not text or text.upper() in ("C", "POSIX"):
        return None
    return text


def environment_locale(override: str | None = None) -> str | None:
    """Locale reported by the environment (explicit setting first, then POSIX vars)."""

    if override:
        return normalize_locale(override)
    for name in _LOCALE_ENV_VARS:
        found = normalize_locale(os.environ.get(name))
        if found:
            return found
    return None


class RegionRegistry:
    """Process-wide, replaceable set of supported regions."""

    def __init__(self, regions: Iterable[Region] | None = None) -> None:
        self._regions: tuple[Region, ...] = tuple(regions) if regions is not None else tuple(default_regions())

    @property
    def regions(self) -> tuple[Region, ...]:
        return self._regions

    def values(self) -> list[str]:
        return [r.value for r in self._regions]

    def replace(self, regions: Sequence[Region]) -> None:
        """Swap the whole set at once; an empty list keeps the current one."""

        if not regions:
            logger.warning("Ignoring empty region list")
            return
        self._regions = tuple(regions)

    def contains(self, code: str) -> bool:
        return any(r.value == code for r in self._regions)

    async def refresh(self, api: "BingPaperApi") -> bool:
        """Pull `/regions` from the backend; keep the current set on failure."""

        try:
            regions = await api.get_regions()
        except ApiError as e:
            logger.warning("Region refresh failed: %s", e)
            return False
        self.replace(regions)
        return bool(regions)


class LocaleResolver:
    def __init__(
        self,
        registry: RegionRegistry,
        store: KeyValueStore,
        *,
        environment: Callable[[], str | None] = environment_locale,
        default: str = DEFAULT_MKT,
    ) -> None:
        self._registry = registry
        self._store = store
        self._environment = environment
        self._default = default

    def environment_mkt(self) -> str:
        """Best supported match for the environment locale, else the default."""

        try:
            lang = self._environment()
        except (OSError, ValueError) as e:
            logger.debug("Environment locale lookup failed: %s", e)
            lang = None
        if not lang:
            return self._default

        regions = self._registry.regions
        lowered = lang.lower()
        for region in regions:
            if region.value.lower() == lowered:
                return region.value

        prefix = language_subtag(lang)
        for region in regions:
            if language_subtag(region.value) == prefix:
                return region.value

        return self._default

    def saved_mkt(self) -> str | None:
        saved = self._store.get(REGION_KEY)
        if saved and self._registry.contains(saved):
            return saved
        return None

    def resolve(self, override: str | None = None) -> str:
        """Effective region code.

        The saved preference and environment matches are always registry
        members. Two results are not checked against the registry: an
        explicit `override` is returned as given, and the configured default
        is returned even after `RegionRegistry.replace` dropped it.
        """

        if override:
            return override
        return self.saved_mkt() or self.environment_mkt()

    def save(self, mkt: str) -> None:
        self._store.set(REGION_KEY, mkt)
