"""Query primitives: stateful wrappers around resource-client calls.

Each primitive owns its loading/error/data state and is the only writer of
it. Consumers read the attributes and may `subscribe` to be told when the
state changes.

Ordering rule: every fetch captures a generation number when it starts and
only writes its result if no newer fetch has started since. Superseded
requests are left to finish on the network; their results are dropped.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Iterable, Mapping, TypeVar

from adapters.api_service import BingPaperApi
from core.domain.errors import ApiError
from core.domain.models import ImageListParams, ImageMeta
from core.logger import get_logger

logger = get_logger("queries")

T = TypeVar("T")

Listener = Callable[[], None]

FIRST_PAGE = 1
DEFAULT_PAGE_SIZE = 30


def should_refetch(
    old: Mapping[str, Any],
    new: Mapping[str, Any],
    deps: Iterable[str] | None = None,
) -> bool:
    """True when any dependency value differs between the two parameter sets.

    With `deps=None` every key present in either mapping is a dependency.
    """

    keys = set(old) | set(new) if deps is None else set(deps)
    return any(old.get(key) != new.get(key) for key in keys)


class QueryStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class ListStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    APPENDED = "appended"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class PaginationMode(str, Enum):
    OFFSET = "offset"
    PAGE = "page"


class _Observable:
    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._generation = 0

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns the matching unsubscribe function."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Query listener %r failed", listener)

    def _begin(self) -> int:
        self._generation += 1
        return self._generation

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation


class ResourceQuery(_Observable, Generic[T]):
    """Single-resource fetch keyed by parameters (date, region, ...).

    States: idle -> loading -> ready | failed. A parameter change refetches
    and supersedes whatever is in flight; a plain `refetch()` while loading
    is ignored.
    """

    def __init__(
        self,
        loader: Callable[..., Awaitable[T]],
        params: Mapping[str, Any] | None = None,
        *,
        name: str = "resource",
        deps: Iterable[str] | None = None,
    ) -> None:
        super().__init__()
        self._loader = loader
        self._deps = tuple(deps) if deps is not None else None
        self.name = name
        self.params: dict[str, Any] = dict(params or {})
        self.data: T | None = None
        self.error: ApiError | None = None
        self.status = QueryStatus.IDLE

    @property
    def loading(self) -> bool:
        return self.status is QueryStatus.LOADING

    async def mount(self) -> None:
        if self.loading:
            return
        await self._fetch()

    async def refetch(self) -> None:
        if self.loading:
            return
        await self._fetch()

    async def set_params(self, **changes: Any) -> bool:
        """Apply parameter changes; refetch (superseding) when a dependency moved."""

        new_params = {**self.params, **changes}
        if not should_refetch(self.params, new_params, self._deps):
            return False
        self.params = new_params
        await self._fetch()
        return True

    async def _fetch(self) -> None:
        generation = self._begin()
        self.status = QueryStatus.LOADING
        self.error = None
        self._notify()

        try:
            value = await self._loader(**self.params)
        except ApiError as exc:
            if self._is_stale(generation):
                return
            self.error = exc
            self.status = QueryStatus.FAILED
            logger.error("Failed to fetch %s %s: %s", self.name, self.params, exc)
            self._notify()
            return

        if self._is_stale(generation):
            logger.debug("Discarding superseded %s result for %s", self.name, self.params)
            return
        self.data = value
        self.status = QueryStatus.READY
        self._notify()


def today_image_query(api: BingPaperApi, mkt: str | None = None) -> ResourceQuery[ImageMeta]:
    return ResourceQuery(api.get_today_image_meta, {"mkt": mkt}, name="today image")


def image_by_date_query(api: BingPaperApi, date: str, mkt: str | None = None) -> ResourceQuery[ImageMeta]:
    return ResourceQuery(api.get_image_meta_by_date, {"date": date, "mkt": mkt}, name="image by date")


def random_image_query(api: BingPaperApi, mkt: str | None = None) -> ResourceQuery[ImageMeta]:
    return ResourceQuery(api.get_random_image_meta, {"mkt": mkt}, name="random image")


class ImageListQuery(_Observable):
    """Paginated, filterable image list with "load more" accumulation.

    - `page` is the cursor: the last page merged into `images` (first page
      after a reset).
    - Month and region filters compose; changing either resets the list.
    - A failed page keeps what was already accumulated.
    """

    def __init__(
        self,
        api: BingPaperApi,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        mode: PaginationMode = PaginationMode.PAGE,
        month: str | None = None,
        mkt: str | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        super().__init__()
        self._api = api
        self.page_size = page_size
        self.mode = mode
        self.month = month
        self.mkt = mkt
        self.images: list[ImageMeta] = []
        self.page = FIRST_PAGE
        self.has_more = True
        self.error: ApiError | None = None
        self.status = ListStatus.IDLE

    @property
    def loading(self) -> bool:
        return self.status is ListStatus.LOADING

    @property
    def filters(self) -> dict[str, str | None]:
        return {"month": self.month, "mkt": self.mkt}

    async def mount(self) -> None:
        if self.loading:
            return
        await self._fetch(FIRST_PAGE)

    async def load_more(self) -> None:
        if self.loading or not self.has_more:
            return
        # Nothing merged yet (first page failed or empty): retry the cursor page.
        next_page = self.page + 1 if self.images else self.page
        await self._fetch(next_page)

    async def filter_by_month(self, month: str | None) -> None:
        ImageListParams(month=month)  # raises on a malformed month
        self.month = month
        self._reset()
        await self._fetch(FIRST_PAGE)

    async def filter_by_region(self, mkt: str | None) -> None:
        self.mkt = mkt
        self._reset()
        await self._fetch(FIRST_PAGE)

    async def refetch(self) -> None:
        """Reload from the first page; ignored while a page is loading."""

        if self.loading:
            return
        self._reset()
        await self._fetch(FIRST_PAGE)

    def params_for(self, page: int) -> ImageListParams:
        if self.mode is PaginationMode.OFFSET:
            return ImageListParams(
                limit=self.page_size,
                offset=(page - 1) * self.page_size,
                month=self.month,
                mkt=self.mkt,
            )
        return ImageListParams(page=page, page_size=self.page_size, month=self.month, mkt=self.mkt)

    def _exhausted(self, count: int) -> bool:
        if self.mode is PaginationMode.OFFSET:
            return count < self.page_size
        return count != self.page_size

    def _reset(self) -> None:
        self.images = []
        self.page = FIRST_PAGE
        self.has_more = True
        self.error = None
        self._notify()

    async def _fetch(self, page: int) -> None:
        generation = self._begin()
        self.status = ListStatus.LOADING
        self.error = None
        self._notify()

        try:
            batch = await self._api.get_images(self.params_for(page))
        except ApiError as exc:
            if self._is_stale(generation):
                return
            self.error = exc
            self.status = ListStatus.FAILED
            logger.error("Failed to fetch images page %s %s: %s", page, self.filters, exc)
            self._notify()
            return

        if self._is_stale(generation):
            logger.debug("Discarding superseded images page %s", page)
            return

        self.images = list(batch) if page == FIRST_PAGE else [*self.images, *batch]
        self.page = page
        self.has_more = not self._exhausted(len(batch))
        self.status = ListStatus.APPENDED if self.has_more else ListStatus.EXHAUSTED
        self._notify()
