"""Summarize the per-variant results of a finished frame-size run."""

from pathlib import Path

import click
import pandas as pd
from rich.console import Console
from rich.table import Table

from ..config import DEFAULT_THRESHOLD_CONFIG
from ..metric_store import RESULT_COLUMNS
from ..session import RESULTS_CSV
from .utils import handle_generic_error


@click.command("summarize")
@click.argument("test_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--failures-only",
    is_flag=True,
    help="Only list variants outside the relative band or below the absolute floor",
)
def summarize(test_dir: Path, failures_only: bool) -> None:
    """Show the sweep results table stored in TEST_DIR.

    TEST_DIR is a per-test directory written by ``codeclab frame-size``; it
    must contain a sweep_results.csv from a full or test-only run.
    """
    try:
        csv_path = test_dir / RESULTS_CSV
        if not csv_path.exists():
            click.echo(f"❌ No sweep results found at: {csv_path}")
            click.echo("   Compression-only runs do not write results; run a test-only pass first.")
            return

        df = pd.read_csv(csv_path)
        missing = [c for c in RESULT_COLUMNS if c not in df.columns]
        if missing:
            click.echo(f"❌ {csv_path} is missing columns: {', '.join(missing)}")
            return
        if df.empty:
            click.echo("⚠️  Sweep results are empty")
            return

        thresholds = DEFAULT_THRESHOLD_CONFIG
        base = float(df["psnr"].iloc[0])
        tolerance = base * thresholds.RELATIVE_TOLERANCE
        df["deviation"] = df["psnr"] - base
        df["relative_ok"] = (df["psnr"] > base - tolerance) & (df["psnr"] < base + tolerance)
        df.loc[df.index[0], "relative_ok"] = True
        df["absolute_ok"] = df["psnr"] > thresholds.ABSOLUTE_FLOOR

        shown = df
        if failures_only:
            shown = df[~(df["relative_ok"] & df["absolute_ok"])]

        console = Console()
        table = Table(
            title=f"📐 Frame-size sweep ({len(df)} variants, baseline {base:.2f} dB)",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("Variant", style="cyan", no_wrap=True)
        table.add_column("Axis")
        table.add_column("Step", justify="right")
        table.add_column("PSNR", justify="right")
        table.add_column("Δ base", justify="right")
        table.add_column("Status", justify="center")

        for row in shown.itertuples(index=False):
            ok = bool(row.relative_ok and row.absolute_ok)
            status = "[green]✅ Pass[/green]" if ok else "[red]❌ Fail[/red]"
            if row.artifact_flag == "possible_artifact":
                status = "[yellow]⚠️  Artifact[/yellow]"
            table.add_row(
                row.variant,
                row.axis,
                str(row.step),
                f"{row.psnr:.2f}",
                f"{row.deviation:+.2f}",
                status,
            )

        console.print(table)
        console.print(
            f"\n📊 Min {df['psnr'].min():.2f} dB, max {df['psnr'].max():.2f} dB, "
            f"{int((~df['relative_ok']).sum())} outside ±{thresholds.RELATIVE_TOLERANCE:.0%}, "
            f"{int((~df['absolute_ok']).sum())} at or below {thresholds.ABSOLUTE_FLOOR:.1f} dB"
        )

    except Exception as e:
        handle_generic_error("Summarize", e)
