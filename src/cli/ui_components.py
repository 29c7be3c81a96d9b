"""CLI UI components (Rich).

Tables and panels live here so commands stay focused on wiring the client
objects and handling failures.
"""

from __future__ import annotations

from typing import Iterable

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import HolidayDay, ImageMeta, Region, Token


def print_banner(console: Console) -> None:
    title = Text("BingPaper", style="bold cyan")
    subtitle = Text("Bing daily wallpaper • metadata • admin", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_images_table(images: Iterable[ImageMeta], *, title: str = "Images") -> Table:
    table = Table(title=title)
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Region", style="white", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Copyright", style="dim")
    for image in images:
        table.add_row(image.date or "-", image.mkt or "-", image.title or "-", image.copyright or "")
    return table


def build_image_panel(image: ImageMeta, *, image_url: str | None = None) -> Panel:
    """Panel for a single `ImageMeta`."""

    title = Text(image.title or "Untitled", style="bold yellow")
    body = Text()
    body.append(f"Date: {image.date or '-'}    Region: {image.mkt or '-'}\n")
    if image.copyright:
        body.append(image.copyright + "\n", style="dim")
    if image.copyrightlink:
        body.append(f"Link: {image.copyrightlink}\n", style="magenta")
    if image.variants:
        body.append("\nVariants:\n", style="bold")
        for v in image.variants:
            body.append(f"- {v.variant}.{v.format} ({v.size} bytes)\n")
    if image_url:
        body.append(f"\nImage: {image_url}", style="cyan")
    return Panel(body, title=title, border_style="yellow")


def build_tokens_table(tokens: Iterable[Token]) -> Table:
    table = Table(title="API Tokens")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Disabled", style="red")
    table.add_column("Expires", style="dim")
    for token in tokens:
        table.add_row(str(token.id), token.name, "yes" if token.disabled else "no", token.expires_at or "-")
    return table


def build_regions_table(regions: Iterable[Region], *, active: str | None = None) -> Table:
    table = Table(title="Regions")
    table.add_column("Code", style="cyan", no_wrap=True)
    table.add_column("Label", style="white")
    table.add_column("Active", style="green")
    for region in regions:
        table.add_row(region.value, region.label, "*" if region.value == active else "")
    return table


def build_holiday_table(days: Iterable[HolidayDay], *, year: int) -> Table:
    table = Table(title=f"Holidays {year}")
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Off day", style="green")
    for day in days:
        table.add_row(day.date, day.name, "yes" if day.is_off_day else "no")
    return table
