from __future__ import annotations

import subprocess
import time
from pathlib import Path
from typing import Any

from ..error_handling import EngineError

__all__ = [
    "run_command",
]


def run_command(
    cmd: list[str],
    *,
    engine: str,
    output_path: Path,
    timeout: int | None = None,
) -> dict[str, Any]:
    """Run one codec command to completion and describe the result.

    Parameters
    ----------
    cmd
        Argument vector; never passed through a shell.
    engine
        Engine key reported in the metadata and in error messages, e.g. "ffmpeg".
    output_path
        File the command should produce; its size is reported in kilobytes.
    timeout
        Seconds before the command is abandoned, or *None* to wait indefinitely.

    Returns
    -------
    dict
        ``render_ms``, ``engine``, ``command`` and ``kilobytes``.

    Raises
    ------
    EngineError
        If the binary is missing, the command times out or exits non-zero.
    """
    command = " ".join(cmd)
    started = time.perf_counter()
    try:
        completed = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as e:
        raise EngineError(f"{engine} binary not found: {cmd[0]}", cause=e) from e
    except subprocess.TimeoutExpired as e:
        raise EngineError(f"{engine} command timed out after {timeout}s", cause=e) from e
    elapsed_ms = int((time.perf_counter() - started) * 1000)

    if completed.returncode != 0:
        raise EngineError(
            f"{engine} command failed (exit {completed.returncode}).\n\n"
            f"STDERR:\n{completed.stderr.strip()}",
            context={"command": command},
        )

    # The analysis pass of a two-pass encode produces no file
    kilobytes = output_path.stat().st_size // 1024 if output_path.exists() else 0

    return {
        "render_ms": elapsed_ms,
        "engine": engine,
        "command": command,
        "kilobytes": kilobytes,
    }
