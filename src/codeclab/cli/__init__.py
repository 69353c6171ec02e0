"""CLI module for CodecLab commands."""

import click

from .frame_size_cmd import frame_size
from .summarize_cmd import summarize
from .tools_cmd import tools


@click.group()
@click.version_option(version="0.1.0", prog_name="codeclab")
def main() -> None:
    """🎞️ CodecLab: codec regression test harness."""
    pass


main.add_command(frame_size)
main.add_command(summarize)
main.add_command(tools)

__all__ = [
    "frame_size",
    "main",
    "summarize",
    "tools",
]
