"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from http_content.core.materials import Material
from http_content.models.results import DownloadResult
from http_content.models.stats import CacheStats
from http_content.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "NetworkError": [
            "• Check your internet connection.",
            "• The host may be down or unreachable from this machine.",
        ],
        "HttpStatusError": [
            "• The URL may be wrong or the file may have been removed.",
            "• Some hosts need headers; pass them with -H 'Name: value'.",
        ],
        "InvalidContentTypeError": [
            "• The server did not send audio for this URL.",
            "• Link directly to the .wav, .mp3 or .ogg file, not a web page.",
        ],
        "InvalidFileTypeError": [
            "• Only .wav, .mp3 and .ogg sounds can be packaged.",
        ],
        "InvalidLinkError": [
            "• The URL must end in a file name with an extension.",
        ],
        "StorageError": [
            "• Check free disk space and permissions of the cache directory.",
        ],
        "MaterialConversionError": [
            "• The downloaded file is not an image format Pillow can decode.",
        ],
        "ConfigurationError": [
            "• Inspect the file shown by `http-content config`.",
            "• Delete it to regenerate the defaults.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration."""
    console = Console()
    content = ""
    for key, value in sorted(config_data.items()):
        content += f"{key} = {value if value is not None else ''}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_download_result(url: str, result: DownloadResult):
    """Displays where a download landed and how it was served."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    if result.stale:
        source = "[yellow]stale local copy (fetch failed)[/yellow]"
    elif result.from_cache:
        source = "[green]cache[/green]"
    else:
        source = "[cyan]network[/cyan]"

    table.add_row("URL:", f"[dim]{url}[/dim]")
    table.add_row("Path:", str(result.path))
    table.add_row("Size:", format_size(result.size))
    table.add_row("Source:", source)
    console.print(table)


def print_material(material: Material):
    console = Console()
    flags = " ".join(material.parameters) or "-"
    console.print(
        f"[green]✓[/green] {material.path} "
        f"[dim]({material.width}x{material.height} {material.mode}, flags: {flags})[/dim]"
    )


def print_stats_table(stats: CacheStats, duration_s: float):
    """Displays the cache counters of a session."""
    console = Console()
    table = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(justify="left")

    table.add_row("Cache hits:", f"[green]{stats.hits}[/green]")
    table.add_row("Cache misses:", str(stats.misses))
    table.add_row("Fetched:", f"{stats.fetches} ({format_size(stats.bytes_fetched)})")
    if stats.fallbacks:
        table.add_row("Stale fallbacks:", f"[yellow]{stats.fallbacks}[/yellow]")
    if stats.failures:
        table.add_row("Failures:", f"[red]{stats.failures}[/red]")
    if stats.evictions:
        table.add_row("Evicted:", str(stats.evictions))
    if stats.sounds_mounted:
        table.add_row("Sounds mounted:", str(stats.sounds_mounted))
    table.add_row("Duration:", format_duration(duration_s))

    console.print(Panel(table, title="Session", border_style="dim", expand=False))
