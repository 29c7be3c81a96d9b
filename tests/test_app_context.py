"""
Tests for the context wiring and a couple of CLI commands that need no server.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from adapters.storage import MemoryStore
from cli.main import app
from core.config import AppSettings
from core.domain.errors import UnauthorizedFailure
from core.interfaces.storage import REGION_KEY, TOKEN_EXPIRES_KEY, TOKEN_KEY
from core.navigation import HistoryNavigator
from core.services.app_context import build_context


def test_build_context_restores_token_and_wires_unauthorized(settings: AppSettings) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(401, json={"message": "expired"})

    store = MemoryStore({TOKEN_KEY: "abc", TOKEN_EXPIRES_KEY: "2999-01-01T00:00:00Z"})
    navigator = HistoryNavigator(current_path="/admin/tokens")

    async def scenario() -> None:
        async with build_context(settings, store=store, navigator=navigator, http_transport=httpx.MockTransport(handler)) as ctx:
            assert ctx.session.is_valid()
            with pytest.raises(UnauthorizedFailure):
                await ctx.api.get_tokens()

    asyncio.run(scenario())

    assert seen[0].headers["Authorization"] == "Bearer abc"
    assert navigator.redirects == ["/admin/login"]
    assert store.get(TOKEN_KEY) is None


def test_context_resolver_uses_settings_locale(settings: AppSettings) -> None:
    settings = settings.model_copy(update={"locale": "ja_JP.UTF-8"})
    store = MemoryStore()

    async def scenario() -> str:
        async with build_context(settings, store=store, http_transport=httpx.MockTransport(lambda r: httpx.Response(200))) as ctx:
            return ctx.locale.resolve()

    assert asyncio.run(scenario()) == "ja-JP"

    store.set(REGION_KEY, "de-DE")
    assert asyncio.run(scenario()) == "de-DE"


@pytest.fixture
def cli_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("BINGPAPER_API_BASE_URL", "https://paper.example/api/v1")
    monkeypatch.setenv("BINGPAPER_STATE_PATH", str(tmp_path / "state.json"))
    monkeypatch.setenv("BINGPAPER_LOCALE", "en_US.UTF-8")
    return tmp_path


def test_cli_url_prints_direct_link(cli_env: Path) -> None:
    result = CliRunner().invoke(app, ["url", "2024-01-01", "--mkt", "en-US"])

    assert result.exit_code == 0
    assert result.output.strip() == "https://paper.example/api/v1/image/date/2024-01-01?variant=UHD&format=jpg&mkt=en-US"


def test_cli_region_prints_environment_match(cli_env: Path) -> None:
    result = CliRunner().invoke(app, ["region"])

    assert result.exit_code == 0
    assert result.output.strip() == "en-US"


def test_cli_logout_clears_state(cli_env: Path) -> None:
    state = cli_env / "state.json"
    state.write_text('{"admin_token": "abc"}', encoding="utf-8")

    result = CliRunner().invoke(app, ["logout"])

    assert result.exit_code == 0
    assert "admin_token" not in state.read_text(encoding="utf-8")
