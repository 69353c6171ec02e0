"""Frame-size sweep generation and per-variant file naming.

A sweep perturbs a base clip geometry along three axes: height only, width
only, and both at once.  The height-only axis starts at step 0, which yields
the unmodified base geometry; that first variant is the *baseline* every
other variant is compared against.  The other two axes start at step 1 so the
baseline is never duplicated.

Enumeration order is significant: it fixes the baseline at index 0 and
determines the order variants are processed and reported in.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .config import DEFAULT_SWEEP_CONFIG
from .error_handling import GeometryError

__all__ = [
    "SweepAxis",
    "Variant",
    "validate_geometry",
    "generate_sweep",
    "expected_variant_count",
    "variant_stem",
    "raw_crop_path",
    "encoded_path",
    "metric_file_path",
    "artifact_file_path",
]

METRIC_FILE_SUFFIX = "psnr.txt"
ARTIFACT_FILE_SUFFIX = "artifact.txt"


class SweepAxis(Enum):
    """Dimension(s) that shrink as the sweep step increases."""

    HEIGHT_ONLY = "height"
    WIDTH_ONLY = "width"
    BOTH = "both"

    @property
    def first_step(self) -> int:
        return 0 if self is SweepAxis.HEIGHT_ONLY else 1

    def deltas(self, step: int) -> tuple[int, int]:
        """Return the (width, height) reduction applied at *step*."""
        if self is SweepAxis.HEIGHT_ONLY:
            return 0, step
        if self is SweepAxis.WIDTH_ONLY:
            return step, 0
        return step, step


# Order is load-bearing, see module docstring.
SWEEP_AXES: tuple[SweepAxis, ...] = (
    SweepAxis.HEIGHT_ONLY,
    SweepAxis.WIDTH_ONLY,
    SweepAxis.BOTH,
)


@dataclass(frozen=True)
class Variant:
    """One geometry-perturbed test case, identified by (axis, step)."""

    axis: SweepAxis
    step: int
    width: int
    height: int

    @property
    def key(self) -> tuple[SweepAxis, int]:
        return self.axis, self.step

    @property
    def is_baseline(self) -> bool:
        return self.axis is SweepAxis.HEIGHT_ONLY and self.step == 0

    @property
    def geometry(self) -> str:
        return f"{self.width}x{self.height}"


def expected_variant_count(depth: int) -> int:
    """Number of variants a sweep of *depth* steps produces."""
    return sum(depth - axis.first_step for axis in SWEEP_AXES)


def validate_geometry(
    width: int,
    height: int,
    depth: int,
    alignment: int = DEFAULT_SWEEP_CONFIG.ALIGNMENT,
) -> None:
    """Check that a base geometry can produce a full sweep.

    Raises:
        GeometryError: If width/height are not multiples of *alignment*, or
            *depth* would shrink a dimension to zero or below.
    """
    width_bad = width % alignment != 0
    height_bad = height % alignment != 0

    if width_bad and height_bad:
        raise GeometryError(
            f"Starting width and height are not multiples of {alignment}",
            context={"width": width, "height": height},
        )
    if height_bad:
        raise GeometryError(
            f"Starting height is not a multiple of {alignment}",
            context={"height": height},
        )
    if width_bad:
        raise GeometryError(
            f"Starting width is not a multiple of {alignment}",
            context={"width": width},
        )

    if depth < 1:
        raise GeometryError(f"Sweep depth must be at least 1, got {depth}")
    # Largest step is depth - 1, so depth == min(width, height) still leaves 1 pixel.
    if width <= 0 or height <= 0 or depth > min(width, height):
        raise GeometryError(
            f"Sweep depth {depth} would produce a non-positive dimension for {width}x{height}",
            context={"width": width, "height": height, "depth": depth},
        )


def generate_sweep(
    width: int,
    height: int,
    depth: int = DEFAULT_SWEEP_CONFIG.DEPTH,
    alignment: int = DEFAULT_SWEEP_CONFIG.ALIGNMENT,
) -> tuple[Variant, ...]:
    """Enumerate the ordered sweep for a base geometry.

    Args:
        width: Base clip width (multiple of *alignment*)
        height: Base clip height (multiple of *alignment*)
        depth: Steps per axis
        alignment: Required alignment of the base geometry

    Returns:
        Tuple of ``3 * depth - 2`` variants; index 0 is the baseline.

    Raises:
        GeometryError: See :func:`validate_geometry`.
    """
    validate_geometry(width, height, depth, alignment)

    variants: list[Variant] = []
    for axis in SWEEP_AXES:
        for step in range(axis.first_step, depth):
            d_width, d_height = axis.deltas(step)
            variants.append(
                Variant(
                    axis=axis,
                    step=step,
                    width=width - d_width,
                    height=height - d_height,
                )
            )
    return tuple(variants)


# ---------------------------------------------------------------------------
# File naming
# ---------------------------------------------------------------------------


def variant_stem(base: Path, variant: Variant) -> Path:
    """``<base>_<W>x<H>`` where *base* is ``<test_dir>/<clip name>``."""
    return base.with_name(f"{base.name}_{variant.geometry}")


def raw_crop_path(base: Path, variant: Variant, raw_ext: str) -> Path:
    """Path of the cropped raw clip for *variant* (``..._raw.yuv``)."""
    stem = variant_stem(base, variant)
    return stem.with_name(f"{stem.name}_raw{_dotted(raw_ext)}")


def encoded_path(base: Path, variant: Variant, enc_format: str) -> Path:
    """Path of the compressed clip for *variant* (``..._enc.ivf``)."""
    stem = variant_stem(base, variant)
    return stem.with_name(f"{stem.name}_enc{_dotted(enc_format)}")


def metric_file_path(encoded: Path) -> Path:
    """Side file holding the metric of *encoded*: extension stripped, ``psnr.txt`` appended."""
    return encoded.with_name(f"{encoded.stem}{METRIC_FILE_SUFFIX}")


def artifact_file_path(encoded: Path) -> Path:
    """Side file marking *encoded* as a possible artifact (``..._encartifact.txt``)."""
    return encoded.with_name(f"{encoded.stem}{ARTIFACT_FILE_SUFFIX}")


def _dotted(ext: str) -> str:
    return ext if ext.startswith(".") else f".{ext}"
