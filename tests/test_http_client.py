"""
Tests for Transport: header merging, body encoding, decoding, failure taxonomy.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from adapters.http_client import RequestOptions, encode_body
from core.domain.errors import ApplicationFailure, TransportFailure, UnauthorizedFailure
from core.domain.models import LoginRequest


def test_default_and_call_headers_are_merged(make_transport) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    transport = make_transport(handler)
    transport.set_header("X-Client", "default")
    transport.set_auth_token("abc")

    async def scenario() -> None:
        await transport.get("/images", headers={"X-Client": "call"})
        await transport.aclose()

    asyncio.run(scenario())

    request = seen[0]
    assert str(request.url) == "http://api.test/api/v1/images"
    assert request.headers["X-Client"] == "call"
    assert request.headers["Authorization"] == "Bearer abc"
    assert request.headers["Content-Type"] == "application/json"
    # The call-level override does not leak into the defaults.
    assert transport.default_headers["X-Client"] == "default"


def test_clear_auth_token_removes_header(make_transport) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    transport = make_transport(handler)
    transport.set_auth_token("abc")
    transport.clear_auth_token()

    asyncio.run(transport.get("/regions"))

    assert "Authorization" not in seen[0].headers


def test_structured_body_is_sent_as_json(make_transport) -> None:
    bodies: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.content)
        return httpx.Response(200, json={})

    transport = make_transport(handler)

    async def scenario() -> None:
        await transport.post("/admin/login", LoginRequest(password="secret"))
        await transport.put("/admin/config", {"Server": {"Port": 9090}})
        await transport.post("/raw", "already-encoded")

    asyncio.run(scenario())

    assert json.loads(bodies[0]) == {"password": "secret"}
    assert json.loads(bodies[1]) == {"Server": {"Port": 9090}}
    assert bodies[2] == b"already-encoded"


def test_get_never_sends_a_body(make_transport) -> None:
    bodies: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.content)
        return httpx.Response(200, json={})

    transport = make_transport(handler)
    asyncio.run(transport.request("/images", RequestOptions("GET", body={"page": 1})))

    assert bodies == [b""]


def test_encode_body_passthrough() -> None:
    assert encode_body(None) == (None, False)
    assert encode_body(b"\x00\x01") == (b"\x00\x01", False)
    payload, encoded = encode_body([1, 2])
    assert encoded and json.loads(payload) == [1, 2]


def test_response_decoded_by_content_type(make_transport) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/json"):
            return httpx.Response(200, json={"title": "Lake"})
        if request.url.path.endswith("/text"):
            return httpx.Response(200, text="pong")
        return httpx.Response(200, content=b"\xff\xd8\xff", headers={"content-type": "image/jpeg"})

    transport = make_transport(handler)

    async def scenario():
        return (
            await transport.get("/json"),
            await transport.get("/text"),
            await transport.get("/binary"),
        )

    as_json, as_text, as_handle = asyncio.run(scenario())

    assert as_json == {"title": "Lake"}
    assert as_text == "pong"
    assert isinstance(as_handle, httpx.Response)
    assert as_handle.content == b"\xff\xd8\xff"


def test_non_2xx_uses_server_message(make_transport) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/message"):
            return httpx.Response(400, json={"message": "invalid month"})
        return httpx.Response(403, json={"error": "token disabled"})

    transport = make_transport(handler)

    with pytest.raises(ApplicationFailure) as first:
        asyncio.run(transport.get("/message"))
    with pytest.raises(ApplicationFailure) as second:
        asyncio.run(transport.get("/error"))

    assert first.value.status == 400
    assert first.value.message == "invalid month"
    assert first.value.body == {"message": "invalid month"}
    assert second.value.status == 403
    assert second.value.message == "token disabled"


def test_non_2xx_without_message_is_synthesized(make_transport) -> None:
    transport = make_transport(lambda request: httpx.Response(404))

    with pytest.raises(ApplicationFailure) as exc:
        asyncio.run(transport.get("/image/date/1999-01-01/meta"))

    assert exc.value.status == 404
    assert exc.value.message == "HTTP 404: Not Found"
    assert not isinstance(exc.value, UnauthorizedFailure)


def test_timeout_is_transport_failure(make_transport) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, json={})

    transport = make_transport(handler)

    with pytest.raises(TransportFailure) as exc:
        asyncio.run(transport.get("/slow", timeout=0.05))

    assert exc.value.status == 0
    assert exc.value.is_transport_failure


def test_network_error_is_transport_failure(make_transport) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = make_transport(handler)

    with pytest.raises(TransportFailure) as exc:
        asyncio.run(transport.get("/images"))

    assert exc.value.status == 0
    assert "connection refused" in exc.value.message


def test_invalid_json_on_success_is_transport_failure(make_transport) -> None:
    transport = make_transport(
        lambda request: httpx.Response(200, content=b"{broken", headers={"content-type": "application/json"})
    )

    with pytest.raises(TransportFailure):
        asyncio.run(transport.get("/images"))


def test_unauthorized_hook_runs_before_error_propagates(make_transport) -> None:
    events: list[str] = []
    transport = make_transport(lambda request: httpx.Response(401, json={"message": "token expired"}))
    transport.on_unauthorized = lambda: events.append("hook")

    async def scenario() -> None:
        try:
            await transport.get("/admin/tokens")
        except UnauthorizedFailure as exc:
            events.append(f"caught {exc.status}")

    asyncio.run(scenario())

    assert events == ["hook", "caught 401"]


def test_unauthorized_is_an_application_failure(make_transport) -> None:
    transport = make_transport(lambda request: httpx.Response(401))

    with pytest.raises(ApplicationFailure) as exc:
        asyncio.run(transport.delete("/admin/tokens/1"))

    assert isinstance(exc.value, UnauthorizedFailure)
    assert exc.value.status == 401


def test_scalar_body_is_sent_as_text(make_transport) -> None:
    bodies: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.content)
        return httpx.Response(200, json={})

    transport = make_transport(handler)

    asyncio.run(transport.post("/admin/fetch", 5))

    assert bodies == [b"5"]
    assert encode_body(2.5) == ("2.5", False)
