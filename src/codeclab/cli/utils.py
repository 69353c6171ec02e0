"""Shared utilities for CLI commands."""

import sys
from pathlib import Path

import click

from ..classifier import Verdict


def handle_generic_error(command_name: str, error: Exception) -> None:
    """Handle generic command errors with consistent formatting."""
    click.echo(f"❌ {command_name} failed: {error}", err=True)
    sys.exit(Verdict.INDETERMINATE.exit_code)


def handle_keyboard_interrupt(command_name: str) -> None:
    """Handle keyboard interrupt with consistent formatting."""
    click.echo(f"\n⏹️  {command_name} interrupted by user", err=True)
    sys.exit(Verdict.INDETERMINATE.exit_code)


def display_common_header(title: str) -> None:
    """Display a common header for CLI commands."""
    click.echo(f"🎞️  {title}")


def display_path_info(label: str, path: Path, emoji: str = "📁") -> None:
    """Display path information with consistent formatting."""
    click.echo(f"{emoji} {label}: {path}")


_VERDICT_EMOJI = {
    Verdict.PASSED: "✅",
    Verdict.FAILED: "❌",
    Verdict.INDETERMINATE: "❔",
    Verdict.ENCODED_ARTIFACTS_CREATED: "📦",
    Verdict.POSSIBLE_ARTIFACT: "⚠️ ",
}


def display_verdict(verdict: Verdict) -> None:
    """Display the final verdict with its exit code."""
    click.echo(f"\n{_VERDICT_EMOJI[verdict]} Verdict: {verdict.label} (exit {verdict.exit_code})")
