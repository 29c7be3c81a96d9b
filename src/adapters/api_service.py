"""BingPaper resource client.

One coroutine per backend endpoint: shape the request, call the transport,
validate the payload into a domain model. Typed failures from the transport
propagate unchanged.

The image URL builders at the bottom never touch the network; they only
format strings for direct binary retrieval.
"""

from __future__ import annotations

from typing import Any, Literal
from urllib.parse import quote, urlencode

from pydantic import BaseModel, TypeAdapter, ValidationError

from adapters.http_client import Transport
from core.domain.errors import TransportFailure
from core.domain.models import (
    AppConfig,
    ChangePasswordRequest,
    CreateTokenRequest,
    ImageFormat,
    ImageListParams,
    ImageMeta,
    ImageVariant,
    LoginRequest,
    ManualFetchRequest,
    Region,
    StatusMessage,
    Token,
    UpdateTokenRequest,
)

ImageTarget = Literal["today", "date", "random"]

_TOKENS = TypeAdapter(list[Token])
_IMAGES = TypeAdapter(list[ImageMeta])
_REGIONS = TypeAdapter(list[Region])


def _with_query(endpoint: str, params: dict[str, str]) -> str:
    query = urlencode(params)
    return f"{endpoint}?{query}" if query else endpoint


def _mkt_query(mkt: str | None) -> dict[str, str]:
    return {"mkt": mkt} if mkt else {}


def _parse(schema: type[BaseModel] | TypeAdapter[Any], payload: Any) -> Any:
    """Validate a 2xx payload; a shape mismatch counts as an unusable response."""

    try:
        if isinstance(schema, TypeAdapter):
            return schema.validate_python(payload)
        return schema.model_validate(payload)
    except ValidationError as e:
        raise TransportFailure(f"Unexpected response shape ({e.error_count()} errors)", payload) from e


def _status(payload: Any) -> StatusMessage:
    if isinstance(payload, dict):
        return _parse(StatusMessage, payload)
    return StatusMessage(message=str(payload or ""))


def build_image_url(
    base_url: str,
    target: ImageTarget = "today",
    *,
    date: str | None = None,
    variant: ImageVariant | str = "UHD",
    format: ImageFormat | str = "jpg",
    mkt: str | None = None,
) -> str:
    """URL of an image binary: `{base}/image/{today|date/<date>|random}?variant=..&format=..`."""

    if target == "date":
        if not date:
            raise ValueError("date is required for target='date'")
        path = f"/image/date/{quote(date, safe='')}"
    else:
        path = f"/image/{target}"
    params = {"variant": variant, "format": format, **_mkt_query(mkt)}
    return f"{base_url}{path}?{urlencode(params)}"


class BingPaperApi:
    """Typed facade over the BingPaper REST API."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    # Auth

    async def login(self, request: LoginRequest) -> Token:
        payload = await self._transport.post("/admin/login", request)
        return _parse(Token, payload)

    async def change_password(self, request: ChangePasswordRequest) -> StatusMessage:
        return _status(await self._transport.post("/admin/password", request))

    # Tokens

    async def get_tokens(self) -> list[Token]:
        return _parse(_TOKENS, await self._transport.get("/admin/tokens") or [])

    async def create_token(self, request: CreateTokenRequest) -> Token:
        return _parse(Token, await self._transport.post("/admin/tokens", request))

    async def update_token(self, token_id: int, request: UpdateTokenRequest) -> StatusMessage:
        return _status(await self._transport.patch(f"/admin/tokens/{token_id}", request))

    async def delete_token(self, token_id: int) -> StatusMessage:
        return _status(await self._transport.delete(f"/admin/tokens/{token_id}"))

    # Configuration

    async def get_config(self) -> AppConfig:
        return _parse(AppConfig, await self._transport.get("/admin/config"))

    async def update_config(self, config: AppConfig) -> AppConfig:
        return _parse(AppConfig, await self._transport.put("/admin/config", config))

    # Admin triggers

    async def manual_fetch(self, request: ManualFetchRequest | None = None) -> StatusMessage:
        return _status(await self._transport.post("/admin/fetch", request))

    async def manual_cleanup(self) -> StatusMessage:
        return _status(await self._transport.post("/admin/cleanup"))

    # Images

    async def get_images(self, params: ImageListParams | None = None) -> list[ImageMeta]:
        query = params.to_query() if params else {}
        payload = await self._transport.get(_with_query("/images", query))
        return _parse(_IMAGES, payload or [])

    async def get_today_image_meta(self, mkt: str | None = None) -> ImageMeta:
        payload = await self._transport.get(_with_query("/image/today/meta", _mkt_query(mkt)))
        return _parse(ImageMeta, payload)

    async def get_image_meta_by_date(self, date: str, mkt: str | None = None) -> ImageMeta:
        endpoint = f"/image/date/{quote(date, safe='')}/meta"
        payload = await self._transport.get(_with_query(endpoint, _mkt_query(mkt)))
        return _parse(ImageMeta, payload)

    async def get_random_image_meta(self, mkt: str | None = None) -> ImageMeta:
        payload = await self._transport.get(_with_query("/image/random/meta", _mkt_query(mkt)))
        return _parse(ImageMeta, payload)

    async def get_regions(self) -> list[Region]:
        return _parse(_REGIONS, await self._transport.get("/regions") or [])

    # Image URLs (no network)

    def today_image_url(self, variant: ImageVariant | str = "UHD", format: ImageFormat | str = "jpg", mkt: str | None = None) -> str:
        return build_image_url(self.base_url, "today", variant=variant, format=format, mkt=mkt)

    def image_url_by_date(
        self,
        date: str,
        variant: ImageVariant | str = "UHD",
        format: ImageFormat | str = "jpg",
        mkt: str | None = None,
    ) -> str:
        return build_image_url(self.base_url, "date", date=date, variant=variant, format=format, mkt=mkt)

    def random_image_url(self, variant: ImageVariant | str = "UHD", format: ImageFormat | str = "jpg", mkt: str | None = None) -> str:
        return build_image_url(self.base_url, "random", variant=variant, format=format, mkt=mkt)
