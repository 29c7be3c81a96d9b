"""BingPaper command line.

Thin consumer of the core: every command builds an `AppContext`, drives a
query primitive or a resource call, and renders the result with Rich.
Typed API failures are reported here and turned into a non-zero exit code.
"""

from __future__ import annotations

import asyncio
import json
from datetime import date as date_cls
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console

from adapters.api_service import build_image_url
from adapters.holiday_service import HolidayService, get_holiday_by_date
from cli import doctor
from cli.ui_components import (
    build_holiday_table,
    build_image_panel,
    build_images_table,
    build_regions_table,
    build_tokens_table,
    print_banner,
)
from core.config import AppSettings
from core.domain.errors import ApiError, UnauthorizedFailure
from core.domain.models import (
    AppConfig,
    ChangePasswordRequest,
    CreateTokenRequest,
    ImageMeta,
    LoginRequest,
    ManualFetchRequest,
    UpdateTokenRequest,
)
from core.logger import setup_logger
from core.navigation import HistoryNavigator
from core.services.app_context import AppContext, build_context
from core.services.queries import (
    ImageListQuery,
    PaginationMode,
    ResourceQuery,
    image_by_date_query,
    random_image_query,
    today_image_query,
)

T = TypeVar("T")

app = typer.Typer(no_args_is_help=True, help="BingPaper daily wallpaper client.")
tokens_app = typer.Typer(no_args_is_help=True, help="Manage API tokens (admin).")
config_app = typer.Typer(no_args_is_help=True, help="Read or replace the server configuration (admin).")
app.add_typer(tokens_app, name="tokens")
app.add_typer(config_app, name="config")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _fail(exc: ApiError) -> typer.Exit:
    if isinstance(exc, UnauthorizedFailure):
        _console.print(f"[red]Unauthorized:[/red] {exc.message}. Run `bingpaper login` first.")
    elif exc.is_transport_failure:
        _console.print(f"[red]Network error:[/red] {exc.message}")
    else:
        _console.print(f"[red]API error ({exc.status}):[/red] {exc.message}")
    return typer.Exit(code=1)


def _run(action: Callable[[AppContext], Awaitable[T]], *, path: str = "/") -> T:
    """Run `action` inside a fresh context whose navigator sits on `path`."""

    settings = AppSettings()
    setup_logger(level=settings.log_level)

    async def runner() -> T:
        async with build_context(settings, navigator=HistoryNavigator(current_path=path)) as ctx:
            return await action(ctx)

    try:
        return asyncio.run(runner())
    except ApiError as exc:
        raise _fail(exc) from exc


async def _show_query(query: ResourceQuery[ImageMeta], image_url: str) -> None:
    await query.mount()
    if query.error is not None:
        raise query.error
    if query.data is not None:
        _console.print(build_image_panel(query.data, image_url=image_url))


def _absolute(settings: AppSettings, url: str) -> str:
    return f"{settings.client_base_url()}{url}"


@app.command()
def today(mkt: Optional[str] = typer.Option(None, "--mkt", help="Region code, e.g. en-US.")) -> None:
    """Show today's image metadata."""

    async def action(ctx: AppContext) -> None:
        region = ctx.locale.resolve(mkt)
        url = _absolute(ctx.settings, ctx.api.today_image_url(mkt=region))
        await _show_query(today_image_query(ctx.api, region), url)

    _run(action)


@app.command(name="date")
def by_date(
    day: str = typer.Argument(..., help="Date in YYYY-MM-DD format."),
    mkt: Optional[str] = typer.Option(None, "--mkt", help="Region code."),
) -> None:
    """Show the image metadata of a given date."""

    async def action(ctx: AppContext) -> None:
        region = ctx.locale.resolve(mkt)
        url = _absolute(ctx.settings, ctx.api.image_url_by_date(day, mkt=region))
        await _show_query(image_by_date_query(ctx.api, day, region), url)

    _run(action, path=f"/image/{day}")


@app.command()
def random(mkt: Optional[str] = typer.Option(None, "--mkt", help="Region code.")) -> None:
    """Show a random image's metadata."""

    async def action(ctx: AppContext) -> None:
        region = ctx.locale.resolve(mkt)
        url = _absolute(ctx.settings, ctx.api.random_image_url(mkt=region))
        await _show_query(random_image_query(ctx.api, region), url)

    _run(action)


@app.command(name="list")
def list_images(
    month: Optional[str] = typer.Option(None, "--month", help="Filter by month (YYYY-MM)."),
    mkt: Optional[str] = typer.Option(None, "--mkt", help="Region code."),
    page_size: int = typer.Option(30, "--page-size", min=1, help="Items per page."),
    pages: int = typer.Option(1, "--pages", min=1, help="How many pages to load."),
    offset_mode: bool = typer.Option(False, "--offset-mode", help="Use limit/offset instead of page/page_size."),
) -> None:
    """List images, optionally filtered by month and region."""

    async def action(ctx: AppContext) -> None:
        query = ImageListQuery(
            ctx.api,
            page_size=page_size,
            mode=PaginationMode.OFFSET if offset_mode else PaginationMode.PAGE,
            month=month,
            mkt=ctx.locale.resolve(mkt),
        )
        await query.mount()
        while query.error is None and query.has_more and query.page < pages:
            await query.load_more()
        if query.images:
            _console.print(build_images_table(query.images, title=f"Images ({query.status.value})"))
        if query.error is not None:
            raise query.error

    _run(action)


@app.command()
def url(
    target: str = typer.Argument("today", help="`today`, `random` or a YYYY-MM-DD date."),
    variant: str = typer.Option("UHD", "--variant", help="Resolution variant."),
    fmt: str = typer.Option("jpg", "--format", help="Image format."),
    mkt: Optional[str] = typer.Option(None, "--mkt", help="Region code."),
) -> None:
    """Print the direct URL of an image binary (no network call)."""

    settings = AppSettings()
    if target in ("today", "random"):
        built = build_image_url(settings.api_base_url, target, variant=variant, format=fmt, mkt=mkt)
    else:
        built = build_image_url(settings.api_base_url, "date", date=target, variant=variant, format=fmt, mkt=mkt)
    typer.echo(_absolute(settings, built))


@app.command()
def regions(refresh: bool = typer.Option(True, "--refresh/--no-refresh", help="Pull the list from the server.")) -> None:
    """Show the supported regions and the one currently in effect."""

    async def action(ctx: AppContext) -> None:
        if refresh and not await ctx.regions.refresh(ctx.api):
            _console.print("[yellow]Using the built-in region list.[/yellow]")
        _console.print(build_regions_table(ctx.regions.regions, active=ctx.locale.resolve()))

    _run(action)


@app.command()
def region(code: Optional[str] = typer.Argument(None, help="Region code to remember.")) -> None:
    """Show the effective region, or remember a new one."""

    async def action(ctx: AppContext) -> None:
        if code is None:
            typer.echo(ctx.locale.resolve())
            return
        await ctx.regions.refresh(ctx.api)
        if not ctx.regions.contains(code):
            _console.print(f"[red]Unsupported region:[/red] {code}")
            raise typer.Exit(code=2)
        ctx.locale.save(code)
        _console.print(f"[green]Region saved:[/green] {code}")

    _run(action)


@app.command()
def login(password: str = typer.Option(..., prompt=True, hide_input=True, help="Admin password.")) -> None:
    """Log in as administrator and keep the session token."""

    async def action(ctx: AppContext) -> None:
        token = await ctx.api.login(LoginRequest(password=password))
        ctx.session.set_token(token.token, token.expires_at)
        _console.print(f"[green]Logged in.[/green] Expires: {token.expires_at or 'never'}")

    _run(action, path="/admin/login")


@app.command()
def logout() -> None:
    """Forget the stored session token."""

    async def action(ctx: AppContext) -> None:
        ctx.session.clear_token()
        _console.print("[green]Logged out.[/green]")

    _run(action)


@app.command()
def status() -> None:
    """Show the session state, API base URL and effective region."""

    async def action(ctx: AppContext) -> None:
        print_banner(_console)
        valid = ctx.session.is_valid()
        _console.print(f"API: {_absolute(ctx.settings, ctx.settings.api_base_url)}")
        _console.print(f"Session: {'[green]valid[/green]' if valid else '[yellow]none[/yellow]'}")
        if valid and ctx.session.expires_at:
            _console.print(f"Expires: {ctx.session.expires_at}")
        _console.print(f"Region: {ctx.locale.resolve()}")

    _run(action)


@app.command()
def password(
    old: str = typer.Option(..., prompt="Current password", hide_input=True),
    new: str = typer.Option(..., prompt="New password", hide_input=True, confirmation_prompt=True),
) -> None:
    """Change the admin password."""

    async def action(ctx: AppContext) -> None:
        result = await ctx.api.change_password(ChangePasswordRequest(old_password=old, new_password=new))
        _console.print(f"[green]{result.message or 'Password changed.'}[/green]")

    _run(action, path="/admin/password")


@app.command()
def fetch(days: Optional[int] = typer.Option(None, "--days", min=1, help="How many days to fetch.")) -> None:
    """Trigger a manual fetch on the server."""

    async def action(ctx: AppContext) -> None:
        request = ManualFetchRequest(n=days) if days else None
        result = await ctx.api.manual_fetch(request)
        _console.print(f"[green]{result.message or 'Fetch started.'}[/green]")

    _run(action, path="/admin/fetch")


@app.command()
def cleanup() -> None:
    """Trigger a manual cleanup on the server."""

    async def action(ctx: AppContext) -> None:
        result = await ctx.api.manual_cleanup()
        _console.print(f"[green]{result.message or 'Cleanup started.'}[/green]")

    _run(action, path="/admin/cleanup")


@app.command()
def holiday(
    year: int = typer.Argument(date_cls.today().year, help="Year to look up."),
    day: Optional[str] = typer.Option(None, "--date", help="Only show this date (YYYY-MM-DD)."),
) -> None:
    """Show public holidays (best effort, never fails the command)."""

    async def action(ctx: AppContext) -> None:
        holidays = await HolidayService(ctx.settings).get_holidays_by_year(year)
        if holidays is None:
            _console.print("[yellow]Holiday data unavailable.[/yellow]")
            return
        if day:
            found = get_holiday_by_date(holidays, day)
            _console.print(f"{day}: {found.name if found else 'no holiday'}")
            return
        _console.print(build_holiday_table(holidays.days, year=year))

    _run(action)


@tokens_app.command(name="list")
def tokens_list() -> None:
    """List API tokens."""

    async def action(ctx: AppContext) -> None:
        _console.print(build_tokens_table(await ctx.api.get_tokens()))

    _run(action, path="/admin/tokens")


@tokens_app.command(name="create")
def tokens_create(
    name: str = typer.Argument(..., help="Token name."),
    expires_in: Optional[str] = typer.Option(None, "--expires-in", help="Relative TTL, e.g. 168h."),
    expires_at: Optional[str] = typer.Option(None, "--expires-at", help="Absolute expiry (RFC 3339)."),
) -> None:
    """Create an API token and print its secret."""

    async def action(ctx: AppContext) -> None:
        token = await ctx.api.create_token(CreateTokenRequest(name=name, expires_in=expires_in, expires_at=expires_at))
        _console.print(build_tokens_table([token]))
        typer.echo(token.token)

    _run(action, path="/admin/tokens")


def _set_disabled(token_id: int, disabled: bool) -> None:
    async def action(ctx: AppContext) -> None:
        result = await ctx.api.update_token(token_id, UpdateTokenRequest(disabled=disabled))
        _console.print(f"[green]{result.message or 'Token updated.'}[/green]")

    _run(action, path="/admin/tokens")


@tokens_app.command(name="enable")
def tokens_enable(token_id: int = typer.Argument(..., help="Token id.")) -> None:
    """Enable a token."""
    _set_disabled(token_id, False)


@tokens_app.command(name="disable")
def tokens_disable(token_id: int = typer.Argument(..., help="Token id.")) -> None:
    """Disable a token."""
    _set_disabled(token_id, True)


@tokens_app.command(name="delete")
def tokens_delete(token_id: int = typer.Argument(..., help="Token id.")) -> None:
    """Delete a token."""

    async def action(ctx: AppContext) -> None:
        result = await ctx.api.delete_token(token_id)
        _console.print(f"[green]{result.message or 'Token deleted.'}[/green]")

    _run(action, path="/admin/tokens")


@config_app.command(name="show")
def config_show(output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the JSON here.")) -> None:
    """Print (or save) the server configuration document."""

    async def action(ctx: AppContext) -> None:
        config = await ctx.api.get_config()
        text = json.dumps(config.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2)
        if output is None:
            typer.echo(text)
            return
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n", encoding="utf-8")
        _console.print(f"[green]Saved config to:[/green] {output}")

    _run(action, path="/admin/config")


@config_app.command(name="push")
def config_push(source: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON config file.")) -> None:
    """Replace the server configuration with a JSON document."""

    config = AppConfig.model_validate_json(source.read_text(encoding="utf-8"))

    async def action(ctx: AppContext) -> None:
        await ctx.api.update_config(config)
        _console.print("[green]Configuration updated.[/green]")

    _run(action, path="/admin/config")


def run() -> None:
    app()
