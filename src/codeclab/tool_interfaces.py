from __future__ import annotations

"""Abstract interface for the codec under test.

The sweep pipeline only talks to a codec through this contract: crop a raw
clip, compress it, and measure the compressed result against the crop.
Concrete engines live in :mod:`codeclab.tool_wrappers`; tests substitute
lightweight fakes.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from .encoder_settings import EncoderSettings
from .metrics import MetricResult


class CodecEngine(ABC):
    """Common behaviour for a codec driven by the regression harness.

    Sub-classes should *not* execute anything in the constructor – keep them
    lightweight so a session can build one before its preconditions pass.
    """

    #: Human-readable name, e.g. ``"ffmpeg-libvpx"``
    NAME: str = "codec"

    @classmethod
    @abstractmethod
    def available(cls) -> bool:  # pragma: no cover
        """Return ``True`` iff the codec can be run on the *current* system."""

    @classmethod
    @abstractmethod
    def version(cls) -> str:  # pragma: no cover
        """Return the codec's version string ("unknown" if it can't be determined)."""

    @abstractmethod
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
    ) -> int:  # pragma: no cover
        """Crop *raw_in* to ``width x height`` at ``(x, y)`` and return the frame count.

        Raises:
            ProcessingError: If the crop cannot be produced
        """

    @abstractmethod
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
    ) -> dict[str, Any]:  # pragma: no cover
        """Compress *raw_in* into *enc_out* and return run metadata.

        Raises:
            EngineError: If the codec reports a failure
        """

    @abstractmethod
    def compute_metric(
        self,
        raw: Path,
        encoded: Path,
        *,
        width: int,
        height: int,
        artifact_detection: bool = False,
    ) -> MetricResult:  # pragma: no cover
        """Measure *encoded* against its uncompressed source *raw*.

        Raises:
            MetricsError: If the metric cannot be computed
        """
