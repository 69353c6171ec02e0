"""Frame-size regression test command."""

import sys
from pathlib import Path

import click

from ..config import DEFAULT_PATH_CONFIG, DEFAULT_SWEEP_CONFIG, SweepConfig
from ..encoder_settings import ENCODE_MODES
from ..io import setup_logging
from ..pipeline import SessionMode
from ..session import TestSession
from ..tool_wrappers import FFmpegVpxCodec
from .utils import (
    display_common_header,
    display_path_info,
    display_verdict,
    handle_generic_error,
    handle_keyboard_interrupt,
)


@click.command("frame-size")
@click.argument(
    "input_path",
    metavar="INPUT",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument("encode_mode", type=click.Choice([str(m) for m in sorted(ENCODE_MODES)]))
@click.argument("bitrate", type=click.IntRange(min=1))
@click.argument("width", type=int)
@click.argument("height", type=int)
@click.argument("enc_format", type=click.Choice(["ivf", "webm", "mkv"]))
@click.argument("dec_format", type=click.Choice(["yuv", "y4m"]))
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(path_type=Path),
    default=None,
    help="YAML encoder settings file; its target_bandwidth overrides BITRATE",
)
@click.option(
    "--test-type",
    type=click.Choice([m.value for m in SessionMode]),
    default=SessionMode.FULL_TEST.value,
    help="full: compress and classify; compress-only: only produce encoded variants; "
    "test-only: classify metrics recorded by an earlier run (default: full)",
)
@click.option(
    "--working-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_PATH_CONFIG.WORKING_DIR,
    help=f"Base directory for timestamped test directories (default: {DEFAULT_PATH_CONFIG.WORKING_DIR})",
)
@click.option(
    "--test-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Existing test directory to measure (required with --test-type test-only)",
)
@click.option(
    "--keep-artifacts/--delete-artifacts",
    default=True,
    help="Keep raw crops and encoded variants after measuring them (default: keep)",
)
@click.option(
    "--artifact-detection/--no-artifact-detection",
    default=False,
    help="Flag variants whose per-frame PSNR collapses as possible artifacts",
)
@click.option(
    "--depth",
    type=click.IntRange(min=1),
    default=DEFAULT_SWEEP_CONFIG.DEPTH,
    help=f"Steps per sweep axis (default: {DEFAULT_SWEEP_CONFIG.DEPTH})",
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_PATH_CONFIG.LOGS_DIR,
    help=f"Directory for log files (default: {DEFAULT_PATH_CONFIG.LOGS_DIR})",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    help="Logging level (default: INFO)",
)
def frame_size(
    input_path: Path,
    encode_mode: str,
    bitrate: int,
    width: int,
    height: int,
    enc_format: str,
    dec_format: str,
    settings_path: Path | None,
    test_type: str,
    working_dir: Path,
    test_dir: Path | None,
    keep_artifacts: bool,
    artifact_detection: bool,
    depth: int,
    log_dir: Path,
    log_level: str,
) -> None:
    """Check that a codec handles every frame size near WIDTH x HEIGHT.

    Crops INPUT (raw I420 .yuv or .y4m) to 3 * depth - 2 geometries just
    below WIDTH x HEIGHT, compresses each variant at BITRATE kbit/s and
    compares its PSNR with the uncropped baseline.  The exit status is the
    verdict: 0 passed, 1 failed, 2 indeterminate, 3 encoded artifacts
    created, 4 possible artifact.

    Examples:

        # Full test of a CIF clip with two-pass good quality at 256 kbit/s
        codeclab frame-size foreman_cif.y4m 4 256 352 288 ivf yuv

        # Re-classify metrics from an earlier run
        codeclab frame-size foreman_cif.y4m 4 256 352 288 ivf yuv \\
            --test-type test-only --test-dir results/frame_size/<run>/test_frame_size
    """
    mode = SessionMode(test_type)
    if mode is SessionMode.MEASUREMENT_ONLY and test_dir is None:
        raise click.UsageError("--test-dir is required with --test-type test-only")

    try:
        setup_logging(log_dir, log_level)

        display_common_header(f"Frame Size test ({mode.value})")
        display_path_info("Input", input_path, "🎬")
        display_path_info("Working directory", test_dir or working_dir)

        try:
            sweep_config = SweepConfig(DEPTH=depth)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--depth") from e

        session = TestSession(
            FFmpegVpxCodec(decode_format=dec_format),
            input_path,
            int(encode_mode),
            bitrate,
            width,
            height,
            enc_format,
            dec_format,
            mode=mode,
            working_dir=working_dir,
            test_dir=test_dir,
            settings_path=settings_path,
            keep_artifacts=keep_artifacts,
            artifact_detection=artifact_detection,
            sweep_config=sweep_config,
            argv=sys.argv,
        )
        verdict = session.run()
    except KeyboardInterrupt:
        handle_keyboard_interrupt("Frame Size test")
    except click.ClickException:
        raise
    except Exception as e:
        handle_generic_error("Frame Size test", e)
    else:
        display_verdict(verdict)
        sys.exit(verdict.exit_code)
