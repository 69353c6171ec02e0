"""Quality metrics for comparing a raw clip with its decoded compression."""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from itertools import zip_longest

import numpy as np
from skimage.metrics import peak_signal_noise_ratio as psnr

from .config import DEFAULT_THRESHOLD_CONFIG
from .error_handling import MetricsError
from .raw_video import Planes, RawClipInfo, iter_frames

logger = logging.getLogger(__name__)

# Reported for bit-exact frames, where PSNR is unbounded
MAX_PSNR_DB = 100.0


class ArtifactFlag(Enum):
    """Signal raised by metric computation independent of the numeric score."""

    NONE = "none"
    POSSIBLE_ARTIFACT = "possible_artifact"


@dataclass
class MetricResult:
    """Outcome of measuring one encoded clip against its source."""

    value: float
    artifact_flag: ArtifactFlag = ArtifactFlag.NONE
    frame_values: list[float] = field(default_factory=list)
    frames_compared: int = 0


def _flatten(planes: Planes) -> np.ndarray:
    return np.concatenate([p.reshape(-1) for p in planes])


def calculate_frame_mse(reference: Planes, test: Planes) -> float:
    """Mean squared error over all Y, U and V samples of a frame."""
    ref = _flatten(reference).astype(np.float64)
    tst = _flatten(test).astype(np.float64)
    if ref.shape != tst.shape:
        raise MetricsError(f"Frame size mismatch: {ref.size} vs {tst.size} samples")
    return float(np.mean((ref - tst) ** 2))


def calculate_safe_psnr(reference: Planes, test: Planes, data_range: float = 255.0) -> float:
    """Calculate frame PSNR with proper handling of perfect matches (MSE = 0).

    Returns:
        PSNR in dB, with MAX_PSNR_DB returned for perfect matches
    """
    if calculate_frame_mse(reference, test) == 0.0:
        return MAX_PSNR_DB
    return float(psnr(_flatten(reference), _flatten(test), data_range=data_range))


def psnr_from_mse(mse: float, data_range: float = 255.0) -> float:
    if mse <= 0.0:
        return MAX_PSNR_DB
    return min(MAX_PSNR_DB, 10.0 * math.log10((data_range**2) / mse))


def detect_possible_artifact(
    frame_values: list[float],
    drop_db: float = DEFAULT_THRESHOLD_CONFIG.ARTIFACT_DROP_DB,
) -> ArtifactFlag:
    """Flag clips where any frame falls far below the clip's typical quality.

    A sudden per-frame PSNR collapse relative to the median frame is the
    signature of a visible corruption (e.g. a broken block row) that an
    averaged score hides.
    """
    if len(frame_values) < 2:
        return ArtifactFlag.NONE

    median = float(np.median(frame_values))
    worst = min(frame_values)
    if median - worst > drop_db:
        logger.warning(
            f"⚠️  Possible artifact: frame PSNR {worst:.2f} dB is "
            f"{median - worst:.2f} dB below median {median:.2f} dB"
        )
        return ArtifactFlag.POSSIBLE_ARTIFACT
    return ArtifactFlag.NONE


def calculate_clip_psnr(
    reference: RawClipInfo,
    decoded: RawClipInfo,
    artifact_detection: bool = False,
    drop_db: float = DEFAULT_THRESHOLD_CONFIG.ARTIFACT_DROP_DB,
    max_frames: int | None = None,
) -> MetricResult:
    """Overall PSNR of *decoded* against *reference*.

    The overall score is derived from the mean squared error over every
    sample of every compared frame, not from the mean of frame PSNRs.

    Raises:
        MetricsError: If geometries or frame counts differ, or no frames
            could be compared
    """
    if (reference.width, reference.height) != (decoded.width, decoded.height):
        raise MetricsError(
            f"Geometry mismatch: reference {reference.width}x{reference.height}, "
            f"decoded {decoded.width}x{decoded.height}"
        )

    frame_mse: list[float] = []
    frame_psnr: list[float] = []
    for ref_planes, dec_planes in zip_longest(
        iter_frames(reference, max_frames), iter_frames(decoded, max_frames)
    ):
        if ref_planes is None or dec_planes is None:
            ref_count = count_frames(reference, max_frames)
            dec_count = count_frames(decoded, max_frames)
            raise MetricsError(
                f"Frame count mismatch: reference {reference.path.name} has {ref_count}, "
                f"decoded {decoded.path.name} has {dec_count}"
            )
        mse = calculate_frame_mse(ref_planes, dec_planes)
        frame_mse.append(mse)
        frame_psnr.append(calculate_safe_psnr(ref_planes, dec_planes))

    if not frame_mse:
        raise MetricsError(f"No frames to compare between {reference.path} and {decoded.path}")

    value = psnr_from_mse(float(np.mean(frame_mse)))
    flag = ArtifactFlag.NONE
    if artifact_detection:
        flag = detect_possible_artifact(frame_psnr, drop_db)

    logger.debug(f"PSNR {decoded.path.name}: {value:.2f} dB over {len(frame_mse)} frames")
    return MetricResult(
        value=value,
        artifact_flag=flag,
        frame_values=frame_psnr,
        frames_compared=len(frame_mse),
    )


def count_frames(info: RawClipInfo, max_frames: int | None = None) -> int:
    return sum(1 for _ in iter_frames(info, max_frames))
