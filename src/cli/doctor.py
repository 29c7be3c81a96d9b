"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from core.config import AppSettings, write_user_env_vars
from core.domain.errors import ApiError
from core.locale import environment_locale
from core.services.app_context import build_context

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_api(settings: AppSettings) -> tuple[bool, str, int]:
    """Reach the public regions endpoint; returns (ok, detail, region count)."""

    async with build_context(settings) as ctx:
        try:
            regions = await ctx.api.get_regions()
        except ApiError as exc:
            return False, exc.message, 0
    return True, "OK", len(regions)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="BingPaper Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("API base URL", "OK", f"{settings.client_base_url()}{settings.api_base_url}")
    table.add_row("Timeout", "OK", f"{settings.http_timeout_seconds:g}s")
    table.add_row("State file", "OK", str(settings.resolved_state_path()))

    lang = environment_locale(settings.locale)
    table.add_row("Environment locale", "OK" if lang else "OPTIONAL", lang or "unset -> default region")

    ok_api, detail_api, count = asyncio.run(_check_api(settings))
    table.add_row("API connectivity", "OK" if ok_api else "FAIL", f"{detail_api} ({count} regions)" if ok_api else detail_api)

    _console.print(table)

    if not ok_api:
        _console.print(
            "\n[yellow]Note:[/yellow] set BINGPAPER_SERVER_ORIGIN / BINGPAPER_API_BASE_URL or run `bingpaper doctor setup`."
        )


@app.command(name="setup")
def setup() -> None:
    """Interactive setup (stores config in the user config .env)."""

    origin = typer.prompt("Server origin", default="http://127.0.0.1:8080", show_default=True).strip()
    base_url = typer.prompt("API base URL", default="/api/v1", show_default=True).strip()
    locale = typer.prompt("Preferred locale (blank = from environment)", default="", show_default=False).strip()

    if not origin:
        raise typer.BadParameter("server origin is required")

    values = {
        "BINGPAPER_SERVER_ORIGIN": origin,
        "BINGPAPER_API_BASE_URL": base_url,
    }
    if locale:
        values["BINGPAPER_LOCALE"] = locale

    env_path = write_user_env_vars(values)
    _console.print(f"[green]Saved config to:[/green] {env_path}")
