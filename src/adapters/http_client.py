"""httpx wrapper and the generic API transport.

Responsibilities:
- Standardize timeouts, default headers and the User-Agent (`build_async_client`).
- Send one request per call, merging default and per-call headers.
- Classify every failure into the typed taxonomy of `core.domain.errors`.
- Decode successful responses by their declared content type.
- Run the unauthorized hook before a 401 propagates.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

import httpx
from pydantic import BaseModel

from core.config import AppSettings, build_api_url
from core.domain.errors import ApiError, TransportFailure, UNAUTHORIZED, application_failure
from core.domain.models import dump_body
from core.logger import get_logger

logger = get_logger("transport")

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH"]

DEFAULT_HEADERS: dict[str, str] = {"Content-Type": "application/json"}


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` with the project's defaults.

    `transport` lets tests plug an `httpx.MockTransport` in place of the network.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json, text/plain, */*",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        base_url=settings.client_base_url(),
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


@dataclass(frozen=True)
class RequestOptions:
    """Per-call request descriptor; built fresh for every request."""

    method: HttpMethod = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None
    timeout: float | None = None


def encode_body(body: Any) -> tuple[str | bytes | None, bool]:
    """Return the payload to send and whether it was serialized to JSON."""

    if body is None:
        return None, False
    if isinstance(body, BaseModel):
        return json.dumps(dump_body(body), ensure_ascii=False), True
    if isinstance(body, (dict, list)):
        return json.dumps(body, ensure_ascii=False), True
    if isinstance(body, (str, bytes)):
        return body, False
    # Numbers, booleans and other scalars go out as their text form.
    return str(body), False


def parse_response(response: httpx.Response) -> Any:
    """Decode a response by content type: JSON, text, or the response handle itself."""

    content_type = (response.headers.get("content-type") or "").lower()
    if "application/json" in content_type:
        if not response.content:
            return None
        return response.json()
    if "text/" in content_type:
        return response.text
    return response


def _error_message(response: httpx.Response, payload: Any) -> str:
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return f"HTTP {response.status_code}: {response.reason_phrase}"


class Transport:
    """Generic API transport shared by every resource call.

    The default header set is process-wide mutable state: the auth session
    installs and removes `Authorization` on it. Requests already in flight
    keep the headers they were sent with.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        on_unauthorized: Callable[[], None] | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client or build_async_client(self._settings)
        self._default_headers: dict[str, str] = dict(DEFAULT_HEADERS)
        self._default_timeout = self._settings.http_timeout_seconds
        self.on_unauthorized = on_unauthorized

    @property
    def base_url(self) -> str:
        return self._settings.api_base_url

    @property
    def default_headers(self) -> dict[str, str]:
        return dict(self._default_headers)

    def set_header(self, key: str, value: str) -> None:
        self._default_headers[key] = value

    def remove_header(self, key: str) -> None:
        self._default_headers.pop(key, None)

    def set_auth_token(self, token: str) -> None:
        self.set_header("Authorization", f"Bearer {token}")

    def clear_auth_token(self) -> None:
        self.remove_header("Authorization")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def request(self, endpoint: str, options: RequestOptions | None = None) -> Any:
        """Send one request and return the decoded payload.

        Raises:
            TransportFailure: timeout or network error (status 0).
            ApplicationFailure: non-2xx response (`UnauthorizedFailure` for 401).
        """

        options = options or RequestOptions()
        url = build_api_url(self.base_url, endpoint)
        headers = {**self._default_headers, **options.headers}
        timeout = options.timeout if options.timeout is not None else self._default_timeout

        content: str | bytes | None = None
        if options.method != "GET":
            content, _ = encode_body(options.body)

        try:
            response = await asyncio.wait_for(
                self._client.request(options.method, url, headers=headers, content=content),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("%s %s timed out after %.1fs", options.method, url, timeout)
            raise TransportFailure(f"Request timed out after {timeout:g}s") from None
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out: %s", options.method, url, exc)
            raise TransportFailure(f"Request timed out: {exc}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("%s %s failed: %s", options.method, url, exc)
            raise TransportFailure(str(exc) or type(exc).__name__) from exc

        try:
            payload = parse_response(response)
        except ValueError as exc:
            if response.is_success:
                raise TransportFailure(f"Invalid response body: {exc}") from exc
            payload = response.text

        if not response.is_success:
            error = application_failure(_error_message(response, payload), response.status_code, payload)
            logger.info("%s %s -> %s", options.method, url, response.status_code)
            if response.status_code == UNAUTHORIZED and self.on_unauthorized is not None:
                self.on_unauthorized()
            raise error

        return payload

    async def get(self, endpoint: str, headers: dict[str, str] | None = None, **kwargs: Any) -> Any:
        return await self.request(endpoint, RequestOptions("GET", headers or {}, **kwargs))

    async def post(self, endpoint: str, body: Any = None, headers: dict[str, str] | None = None, **kwargs: Any) -> Any:
        return await self.request(endpoint, RequestOptions("POST", headers or {}, body, **kwargs))

    async def put(self, endpoint: str, body: Any = None, headers: dict[str, str] | None = None, **kwargs: Any) -> Any:
        return await self.request(endpoint, RequestOptions("PUT", headers or {}, body, **kwargs))

    async def patch(self, endpoint: str, body: Any = None, headers: dict[str, str] | None = None, **kwargs: Any) -> Any:
        return await self.request(endpoint, RequestOptions("PATCH", headers or {}, body, **kwargs))

    async def delete(self, endpoint: str, headers: dict[str, str] | None = None, **kwargs: Any) -> Any:
        return await self.request(endpoint, RequestOptions("DELETE", headers or {}, **kwargs))


__all__ = [
    "ApiError",
    "DEFAULT_HEADERS",
    "RequestOptions",
    "Transport",
    "build_async_client",
    "encode_body",
    "parse_response",
]
