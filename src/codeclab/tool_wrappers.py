"""Concrete codec engines for the frame-size harness."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any

from .config import DEFAULT_ENGINE_CONFIG, DEFAULT_THRESHOLD_CONFIG, EngineConfig
from .encoder_settings import EncoderSettings
from .error_handling import EngineError, MetricsError, ProcessingError, error_context
from .external_engines.ffmpeg import decode_to_raw, vpx_encode
from .metrics import MetricResult, calculate_clip_psnr
from .raw_video import crop_raw_clip, probe_raw_clip
from .system_tools import discover_tool, ffmpeg_has_encoder
from .tool_interfaces import CodecEngine

logger = logging.getLogger(__name__)


class FFmpegVpxCodec(CodecEngine):
    """VP8 via FFmpeg/libvpx; cropping and PSNR are computed in-process."""

    NAME = "ffmpeg-libvpx"

    def __init__(
        self,
        engine_config: EngineConfig | None = None,
        artifact_drop_db: float = DEFAULT_THRESHOLD_CONFIG.ARTIFACT_DROP_DB,
        decode_format: str = "yuv",
    ) -> None:
        self.engine_config = engine_config or DEFAULT_ENGINE_CONFIG
        self.artifact_drop_db = artifact_drop_db
        self.decode_format = decode_format.lstrip(".")

    @classmethod
    def available(cls) -> bool:
        return ffmpeg_has_encoder("libvpx")

    @classmethod
    def version(cls) -> str:
        return discover_tool("ffmpeg").version or "unknown"

    def crop(
        self,
        raw_in: Path,
        raw_out: Path,
        *,
        x: int,
        y: int,
        width: int,
        height: int,
        source_width: int,
        source_height: int,
    ) -> int:
        with error_context(
            "crop raw clip",
            ProcessingError,
            context={"input": raw_in.name, "geometry": f"{width}x{height}"},
            logger=logger,
        ):
            source = probe_raw_clip(raw_in, source_width, source_height)
            return crop_raw_clip(source, raw_out, x, y, width, height)

    def encode(
        self,
        raw_in: Path,
        enc_out: Path,
        *,
        width: int,
        height: int,
        speed: int,
        bitrate: int,
        settings: EncoderSettings,
    ) -> dict[str, Any]:
        with error_context("encode clip", EngineError, context={"input": raw_in.name}, logger=logger):
            source = probe_raw_clip(raw_in, width, height)
            return vpx_encode(
                source,
                enc_out,
                settings,
                speed=speed,
                bitrate=bitrate,
                engine_config=self.engine_config,
            )

    def compute_metric(
        self,
        raw: Path,
        encoded: Path,
        *,
        width: int,
        height: int,
        artifact_detection: bool = False,
    ) -> MetricResult:
        with error_context("compute PSNR", MetricsError, context={"encoded": encoded.name}, logger=logger):
            reference = probe_raw_clip(raw, width, height)
            with tempfile.TemporaryDirectory(dir=encoded.parent) as tmpdir:
                decoded_path = Path(tmpdir) / f"{encoded.stem}_dec.{self.decode_format}"
                decode_to_raw(encoded, decoded_path, engine_config=self.engine_config)
                decoded = probe_raw_clip(decoded_path, width, height)
                return calculate_clip_psnr(
                    reference,
                    decoded,
                    artifact_detection=artifact_detection,
                    drop_db=self.artifact_drop_db,
                )
