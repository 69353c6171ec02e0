"""Variant pipeline: crop → encode → measure → persist for every sweep variant.

Variants are processed strictly one at a time in generation order.  Any step
failure propagates immediately so the session can abort the rest of the
sweep; artifacts already produced are left in place.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .config import DEFAULT_SWEEP_CONFIG
from .encoder_settings import EncoderSettings
from .metric_store import MetricStore, write_artifact_file, write_metric_file
from .metrics import ArtifactFlag
from .report import SessionReport
from .sweep import Variant, artifact_file_path, encoded_path, metric_file_path, raw_crop_path
from .tool_interfaces import CodecEngine

logger = logging.getLogger(__name__)


class SessionMode(Enum):
    """Which pipeline steps a session runs."""

    FULL_TEST = "full"
    COMPRESSION_ONLY = "compress-only"
    MEASUREMENT_ONLY = "test-only"

    @property
    def compresses(self) -> bool:
        return self is not SessionMode.MEASUREMENT_ONLY

    @property
    def classifies(self) -> bool:
        return self is not SessionMode.COMPRESSION_ONLY


@dataclass
class VariantArtifacts:
    """Files and results produced for one variant while it is processed."""

    variant: Variant
    raw_path: Path
    encoded_path: Path
    metric_path: Path
    artifact_path: Path
    metric_value: float | None = None
    artifact_flag: ArtifactFlag = ArtifactFlag.NONE

    def delete_files(self) -> None:
        for path in (self.raw_path, self.encoded_path):
            path.unlink(missing_ok=True)


@dataclass
class PipelineSource:
    """The base clip every variant is cropped from."""

    path: Path
    width: int
    height: int

    @property
    def raw_ext(self) -> str:
        return self.path.suffix or ".yuv"


class VariantPipelineRunner:
    """Drive each sweep variant through the codec."""

    def __init__(
        self,
        codec: CodecEngine,
        source: PipelineSource,
        output_base: Path,
        enc_format: str,
        settings: EncoderSettings,
        bitrate: int,
        *,
        speed: int = DEFAULT_SWEEP_CONFIG.SPEED,
        keep_artifacts: bool = True,
        artifact_detection: bool = False,
        report: SessionReport | None = None,
    ) -> None:
        """
        Args:
            codec: Codec under test
            source: Base raw clip
            output_base: ``<test_dir>/<clip name>``; variant files derive from it
            enc_format: Encoded container extension (``ivf``, ``webm``...)
            settings: Encoder configuration
            bitrate: Target bitrate in kbit/s
            speed: Encoder speed for every variant
            keep_artifacts: Keep raw crops and encoded files after measurement
            artifact_detection: Ask the metric step to flag possible artifacts
            report: Session report receiving progress lines
        """
        self.codec = codec
        self.source = source
        self.output_base = output_base
        self.enc_format = enc_format
        self.settings = settings
        self.bitrate = bitrate
        self.speed = speed
        self.keep_artifacts = keep_artifacts
        self.artifact_detection = artifact_detection
        self.report = report

    def artifacts_for(self, variant: Variant) -> VariantArtifacts:
        encoded = encoded_path(self.output_base, variant, self.enc_format)
        return VariantArtifacts(
            variant=variant,
            raw_path=raw_crop_path(self.output_base, variant, self.source.raw_ext),
            encoded_path=encoded,
            metric_path=metric_file_path(encoded),
            artifact_path=artifact_file_path(encoded),
        )

    def _say(self, text: str) -> None:
        if self.report is not None:
            self.report.line(text)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def crop(self, artifacts: VariantArtifacts) -> None:
        variant = artifacts.variant
        self._say("")
        self._say(f"Cropping to {variant.width} {variant.height}")
        self.codec.crop(
            self.source.path,
            artifacts.raw_path,
            x=0,
            y=0,
            width=variant.width,
            height=variant.height,
            source_width=self.source.width,
            source_height=self.source.height,
        )

    def encode(self, artifacts: VariantArtifacts) -> None:
        variant = artifacts.variant
        self._say(f"Compressing {artifacts.raw_path.name}")
        meta = self.codec.encode(
            artifacts.raw_path,
            artifacts.encoded_path,
            width=variant.width,
            height=variant.height,
            speed=self.speed,
            bitrate=self.bitrate,
            settings=self.settings,
        )
        logger.debug(
            f"Encoded {artifacts.encoded_path.name} in {meta.get('render_ms', 0)} ms "
            f"({meta.get('kilobytes', 0)} KB)"
        )

    def measure(self, artifacts: VariantArtifacts) -> None:
        variant = artifacts.variant
        result = self.codec.compute_metric(
            artifacts.raw_path,
            artifacts.encoded_path,
            width=variant.width,
            height=variant.height,
            artifact_detection=self.artifact_detection,
        )
        artifacts.metric_value = result.value
        artifacts.artifact_flag = result.artifact_flag
        self._say(f"PSNR {artifacts.encoded_path.name}: {result.value:.2f}")

    def persist(self, artifacts: VariantArtifacts) -> None:
        write_metric_file(artifacts.metric_path, artifacts.metric_value)
        write_artifact_file(artifacts.artifact_path, artifacts.artifact_flag)

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------

    def process_variant(self, variant: Variant, mode: SessionMode) -> VariantArtifacts:
        """Run the steps *mode* calls for on one variant."""
        artifacts = self.artifacts_for(variant)
        self.crop(artifacts)
        self.encode(artifacts)
        if mode is SessionMode.COMPRESSION_ONLY:
            return artifacts

        self.measure(artifacts)
        self.persist(artifacts)
        if not self.keep_artifacts:
            artifacts.delete_files()
        return artifacts

    def run(self, variants: Sequence[Variant], mode: SessionMode) -> MetricStore:
        """Process every variant in order and collect the metrics.

        Returns:
            The metric store; empty for compression-only sessions

        Raises:
            ProcessingError, EngineError, MetricsError: On the first failing
                step; remaining variants are not attempted.
        """
        if mode is SessionMode.MEASUREMENT_ONLY:
            return self.recover(variants)

        store = MetricStore()
        for index, variant in enumerate(variants, start=1):
            logger.info(f"🎞️  Variant {index}/{len(variants)}: {variant.geometry} ({variant.axis.value})")
            artifacts = self.process_variant(variant, mode)
            if mode is SessionMode.FULL_TEST:
                store.append(variant, artifacts.metric_value, artifacts.artifact_flag)
        return store

    def recover(self, variants: Sequence[Variant]) -> MetricStore:
        """Rebuild the metric store from side files written by an earlier run."""
        artifacts = [self.artifacts_for(v) for v in variants]
        store = MetricStore.from_metric_files(
            variants,
            [a.metric_path for a in artifacts],
            [a.artifact_path for a in artifacts],
        )
        logger.info(f"♻️  Recovered {len(store)} metrics from {self.output_base.parent}")
        return store
