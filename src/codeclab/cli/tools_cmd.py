"""Report which external codec tools are available."""

import click
from rich.console import Console
from rich.table import Table

from ..system_tools import ffmpeg_has_encoder, get_available_tools


@click.command("tools")
def tools() -> None:
    """Check FFmpeg/FFprobe availability and libvpx support."""
    console = Console()
    table = Table(title="🛠️  External Tools", show_header=True, header_style="bold magenta")
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center")
    table.add_column("Version", style="dim")

    infos = get_available_tools()
    for key, info in infos.items():
        status = "[green]✅ Available[/green]" if info.available else "[red]❌ Missing[/red]"
        table.add_row(key, status, info.version or "")

    has_vpx = ffmpeg_has_encoder("libvpx")
    table.add_row(
        "libvpx",
        "[green]✅ Available[/green]" if has_vpx else "[red]❌ Missing[/red]",
        "via ffmpeg -encoders",
    )
    console.print(table)

    if not (has_vpx and all(info.available for info in infos.values())):
        console.print("⚠️  [yellow]Full and compress-only runs need FFmpeg built with libvpx.[/yellow]")
