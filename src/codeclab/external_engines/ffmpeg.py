from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..encoder_settings import EncoderSettings
from ..error_handling import EngineError
from ..raw_video import RawClipInfo
from ..system_tools import discover_tool
from .common import run_command

__all__ = [
    "ENCODED_CONTAINERS",
    "vpx_encode",
    "decode_to_raw",
]

# Encoded container name -> FFmpeg muxer
ENCODED_CONTAINERS: dict[str, str] = {
    "ivf": "ivf",
    "webm": "webm",
    "mkv": "matroska",
}

# Raw container name -> FFmpeg muxer
_RAW_MUXERS: dict[str, str] = {
    ".yuv": "rawvideo",
    ".y4m": "yuv4mpegpipe",
}


def _ffmpeg_binary(engine_config: EngineConfig | None) -> str:
    info = discover_tool("ffmpeg", engine_config or DEFAULT_ENGINE_CONFIG)
    try:
        info.require()
    except RuntimeError as e:
        raise EngineError(str(e), cause=e) from e
    return info.name


def _raw_input_args(source: RawClipInfo, frame_rate: float) -> list[str]:
    if source.container == "y4m":
        return ["-i", str(source.path)]
    return [
        "-f",
        "rawvideo",
        "-pix_fmt",
        "yuv420p",
        "-s",
        f"{source.width}x{source.height}",
        "-r",
        f"{frame_rate:g}",
        "-i",
        str(source.path),
    ]


def _libvpx_args(settings: EncoderSettings, speed: int, bitrate: int) -> list[str]:
    args = [
        "-c:v",
        "libvpx",
        "-b:v",
        f"{bitrate}k",
        "-deadline",
        settings.deadline,
        "-cpu-used",
        str(speed),
        "-qmin",
        str(settings.min_quantizer),
        "-qmax",
        str(settings.max_quantizer),
        "-g",
        str(settings.kf_max_dist),
        "-lag-in-frames",
        str(settings.lag_in_frames),
        "-noise-sensitivity",
        str(settings.noise_sensitivity),
        "-sharpness",
        str(settings.sharpness),
        "-threads",
        str(settings.threads),
    ]
    if settings.error_resilient:
        args.extend(["-error-resilient", "1"])
    return args


# ----------------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------------


def vpx_encode(
    source: RawClipInfo,
    output_path: Path,
    settings: EncoderSettings,
    *,
    speed: int,
    bitrate: int,
    engine_config: EngineConfig | None = None,
) -> dict[str, Any]:
    """Compress a raw clip with libvpx (VP8) through FFmpeg.

    One- or two-pass depending on ``settings.mode``.  The output container
    is picked from the suffix of *output_path* (``.ivf``, ``.webm``, ``.mkv``).
    """
    container = output_path.suffix.lstrip(".").lower()
    if container not in ENCODED_CONTAINERS:
        raise EngineError(f"Unsupported encoded container: {output_path.suffix}")

    ffmpeg = _ffmpeg_binary(engine_config)
    timeout = (engine_config or DEFAULT_ENGINE_CONFIG).COMMAND_TIMEOUT
    output_path.parent.mkdir(parents=True, exist_ok=True)

    base_cmd = [ffmpeg, "-y", "-v", "error", *_raw_input_args(source, settings.frame_rate)]
    codec_args = _libvpx_args(settings, speed, bitrate)
    muxer_args = ["-f", ENCODED_CONTAINERS[container]]

    if settings.passes == 1:
        cmd = base_cmd + codec_args + muxer_args + [str(output_path)]
        return run_command(cmd, engine="ffmpeg", output_path=output_path, timeout=timeout)

    with tempfile.TemporaryDirectory() as tmpdir:
        passlog = str(Path(tmpdir) / "vpx2pass")

        # 1️⃣ analysis pass, output discarded
        first = base_cmd + codec_args + ["-pass", "1", "-passlogfile", passlog, "-f", "null", os.devnull]
        meta1 = run_command(first, engine="ffmpeg", output_path=output_path, timeout=timeout)

        # 2️⃣ final pass
        second = base_cmd + codec_args + ["-pass", "2", "-passlogfile", passlog] + muxer_args + [str(output_path)]
        meta2 = run_command(second, engine="ffmpeg", output_path=output_path, timeout=timeout)

    return {
        "render_ms": meta1.get("render_ms", 0) + meta2.get("render_ms", 0),
        "engine": "ffmpeg",
        "command": f"{meta1.get('command', '')}\n{meta2.get('command', '')}",
        "kilobytes": meta2.get("kilobytes", 0),
    }


def decode_to_raw(
    input_path: Path,
    output_path: Path,
    *,
    engine_config: EngineConfig | None = None,
) -> dict[str, Any]:
    """Decode a compressed clip to planar I420 (``.yuv`` or ``.y4m`` by suffix)."""
    muxer = _RAW_MUXERS.get(output_path.suffix.lower())
    if muxer is None:
        raise EngineError(f"Unsupported raw output container: {output_path.suffix}")

    ffmpeg = _ffmpeg_binary(engine_config)
    timeout = (engine_config or DEFAULT_ENGINE_CONFIG).COMMAND_TIMEOUT
    output_path.parent.mkdir(parents=True, exist_ok=True)

    cmd = [
        ffmpeg,
        "-y",
        "-v",
        "error",
        "-i",
        str(input_path),
        "-pix_fmt",
        "yuv420p",
        "-f",
        muxer,
        str(output_path),
    ]
    return run_command(cmd, engine="ffmpeg", output_path=output_path, timeout=timeout)
