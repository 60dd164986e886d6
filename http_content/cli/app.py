"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from http_content import __version__
from http_content.core.content_manager import ContentManager
from http_content.exceptions import ConfigurationError, HttpContentError
from http_content.models.config import ContentConfig
from http_content.storage.config_manager import ConfigManager
from http_content.utils.formatting import parse_header
from http_content.utils.structured_logger import create_structured_logger

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_download_result,
    print_material,
    print_stats_table,
)

console = Console()

logging.basicConfig(
    level="WARNING",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("http_content")

app = typer.Typer(
    name="http-content",
    help="A content-addressable download cache for remote assets.",
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "http-content"


def _config_file(ctx: typer.Context) -> Path:
    return ctx.obj["config_dir"] / "config.ini"


def _headers(raw_headers: list[str] | None) -> dict[str, str]:
    headers = {}
    for raw in raw_headers or []:
        try:
            name, value = parse_header(raw)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--header") from e
        headers[name] = value
    return headers


def _load(ctx: typer.Context) -> ContentConfig:
    try:
        return ConfigManager(_config_file(ctx)).load_config()
    except ConfigurationError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


def _run_with_manager(
    ctx: typer.Context,
    action: Callable[[ContentManager], Awaitable[Any]],
    config: ContentConfig | None = None,
) -> Any:
    """Loads the config, runs one action inside a ContentManager and prints stats."""
    config = config or _load(ctx)
    base_logger, events = create_structured_logger(ctx.obj.get("json_log"))

    async def _run_async():
        start = time.monotonic()
        async with ContentManager(config, events=events) as manager:
            try:
                return await action(manager)
            finally:
                if ctx.obj.get("show_stats"):
                    print_stats_table(manager.stats, time.monotonic() - start)

    try:
        return asyncio.run(_run_async())
    except HttpContentError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    finally:
        base_logger.close()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    config_dir: Path | None = typer.Option(
        None, "--config-dir", help="Directory holding config.ini (and the cache)."
    ),
    json_log: Path | None = typer.Option(
        None, "--json-log", help="Also write JSON-lines event logs to this directory."
    ),
    show_stats: bool = typer.Option(
        False, "--stats", help="Print cache counters after the command."
    ),
):
    """HTTP content cache CLI"""
    if version:
        console.print(f"[bold]http-content[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "WARNING"
    if verbose == 1:
        log_level = "INFO"
    elif verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("http_content").setLevel(log_level)

    ctx.obj = {
        "config_dir": config_dir or get_config_dir(),
        "json_log": json_log,
        "show_stats": show_stats,
    }

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command(name="get")
def get_command(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL to download."),
    bucket: str = typer.Option("data", "--bucket", "-b", help="Cache sub-folder."),
    extension: str | None = typer.Option(
        None, "--ext", help="Extension to use when the URL has none."
    ),
    header: list[str] | None = typer.Option(  # noqa: B008
        None, "--header", "-H", help="Extra request header, 'Name: value'."
    ),
):
    """Download a URL into the cache (or serve it from there)."""
    headers = _headers(header)
    result = _run_with_manager(
        ctx, lambda m: m.download_content(bucket, url, headers, extension)
    )
    print_download_result(url, result)


@app.command()
def image(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Image URL."),
    extension: str | None = typer.Option(None, "--ext", help="Default: png."),
    header: list[str] | None = typer.Option(None, "--header", "-H"),  # noqa: B008
):
    """Download an image into the 'images' bucket and print its path."""
    headers = _headers(header)
    path = _run_with_manager(ctx, lambda m: m.download_image(url, extension, headers))
    console.print(str(path))


@app.command()
def audio(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Audio URL."),
    extension: str | None = typer.Option(None, "--ext", help="Default: mp3."),
    header: list[str] | None = typer.Option(None, "--header", "-H"),  # noqa: B008
):
    """Download audio into the 'sounds/files' bucket and print its path."""
    headers = _headers(header)
    path = _run_with_manager(ctx, lambda m: m.download_audio(url, extension, headers))
    console.print(str(path))


@app.command()
def sound(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL of a .wav, .mp3 or .ogg file."),
    header: list[str] | None = typer.Option(None, "--header", "-H"),  # noqa: B008
):
    """Package a sound into a container and mount it."""
    headers = _headers(header)
    sound_path = _run_with_manager(ctx, lambda m: m.download_sound(url, headers))
    console.print(f"[green]✓[/green] {sound_path}")


@app.command()
def material(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Image URL."),
    parameters: str | None = typer.Option(
        None, "--params", help="Material flags, e.g. 'smooth mips'."
    ),
    header: list[str] | None = typer.Option(None, "--header", "-H"),  # noqa: B008
):
    """Download an image and check that it converts to a material."""
    headers = _headers(header)
    result = _run_with_manager(
        ctx, lambda m: m.download_material(url, parameters, headers)
    )
    print_material(result)


@app.command()
def sweep(
    ctx: typer.Context,
    folder: str | None = typer.Argument(
        None, help="Sub-folder of the cache to sweep (default: everything)."
    ),
):
    """Delete cache entries older than the configured lifetime."""
    config = _load(ctx)
    # The explicit sweep below covers the startup one.
    config.autoremove = False
    _run_with_manager(ctx, lambda m: m.clear_cache(folder), config=config)
    console.print("[green]✓ Sweep finished.[/green]")


@app.command(name="config")
def show_config(ctx: typer.Context):
    """Display the current configuration."""
    config = _load(ctx)
    print_config(_config_file(ctx), config.model_dump())


@app.command(name="set-lifetime")
def set_lifetime(
    ctx: typer.Context,
    hours: float = typer.Argument(..., help="Lifetime of cached files in hours."),
):
    """Change how long downloaded files stay fresh."""
    try:
        config = ConfigManager(_config_file(ctx)).update(lifetime_hours=hours)
    except ConfigurationError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    console.print(f"[green]✓ Lifetime set to {config.lifetime_hours:g} hours.[/green]")


@app.command()
def autoremove(
    ctx: typer.Context,
    state: str = typer.Argument(..., help="'on' or 'off'."),
):
    """Turn automatic removal of expired files on or off (on triggers a sweep)."""
    if state.lower() not in ("on", "off"):
        raise typer.BadParameter("State must be 'on' or 'off'.", param_hint="state")
    enabled = state.lower() == "on"

    previous = _load(ctx)
    try:
        ConfigManager(_config_file(ctx)).update(autoremove=enabled)
    except ConfigurationError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e

    async def _apply(manager: ContentManager) -> None:
        manager.settings.set("autoremove", enabled)
        await manager.sweeper.wait_pending()

    _run_with_manager(ctx, _apply, config=previous)
    console.print(f"[green]✓ Autoremove {'enabled' if enabled else 'disabled'}.[/green]")
