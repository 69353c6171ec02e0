"""Per-variant metric storage and side-file persistence.

The store is append-only and ordered by sweep generation order, so entry 0
is always the baseline.  Each metric is also written as a plain decimal text
file next to the encoded clip, with a marker file beside it when the variant
was flagged; measurement-only sessions rebuild the store from those files
without touching the codec.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from .error_handling import ClassificationError, MetricsError
from .io import atomic_write
from .metrics import ArtifactFlag
from .sweep import SweepAxis, Variant

logger = logging.getLogger(__name__)

__all__ = [
    "MetricEntry",
    "MetricStore",
    "write_metric_file",
    "read_metric_file",
    "write_artifact_file",
    "read_artifact_file",
]

RESULT_COLUMNS = ["variant", "axis", "step", "width", "height", "psnr", "artifact_flag"]


@dataclass(frozen=True)
class MetricEntry:
    """Metric recorded for one variant."""

    variant: Variant
    value: float
    artifact_flag: ArtifactFlag = ArtifactFlag.NONE


class MetricStore:
    """Ordered, append-only sequence of metric entries keyed by variant identity."""

    def __init__(self) -> None:
        self._entries: list[MetricEntry] = []
        self._keys: set[tuple[SweepAxis, int]] = set()

    def append(
        self,
        variant: Variant,
        value: float,
        artifact_flag: ArtifactFlag = ArtifactFlag.NONE,
    ) -> MetricEntry:
        if variant.key in self._keys:
            raise MetricsError(
                f"Metric for {variant.axis.value} step {variant.step} already recorded"
            )
        if not self._entries and not variant.is_baseline:
            raise MetricsError("First metric entry must belong to the baseline variant")

        entry = MetricEntry(variant=variant, value=float(value), artifact_flag=artifact_flag)
        self._entries.append(entry)
        self._keys.add(variant.key)
        return entry

    @property
    def baseline(self) -> MetricEntry:
        if not self._entries:
            raise ClassificationError("Metric store is empty; no baseline available")
        return self._entries[0]

    def is_complete(self, variants: Sequence[Variant]) -> bool:
        """``True`` when the store holds exactly *variants*, in order."""
        return [e.variant for e in self._entries] == list(variants)

    def require_complete(self, variants: Sequence[Variant]) -> None:
        if not self.is_complete(variants):
            raise ClassificationError(
                f"Metric store holds {len(self._entries)} of {len(variants)} variants; "
                "classification needs the whole sweep"
            )

    def flagged(self) -> list[MetricEntry]:
        return [e for e in self._entries if e.artifact_flag is ArtifactFlag.POSSIBLE_ARTIFACT]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[MetricEntry]:
        return iter(self._entries)

    # ------------------------------------------------------------------
    # Recovery and export
    # ------------------------------------------------------------------

    @classmethod
    def from_metric_files(
        cls,
        variants: Sequence[Variant],
        metric_paths: Sequence[Path],
        artifact_paths: Sequence[Path] | None = None,
    ) -> MetricStore:
        """Rebuild a store from previously persisted side files.

        Without *artifact_paths* every recovered entry is unflagged.
        """
        if artifact_paths is None:
            artifact_paths = [None] * len(variants)
        store = cls()
        for variant, path, flag_path in zip(variants, metric_paths, artifact_paths, strict=True):
            flag = read_artifact_file(flag_path) if flag_path is not None else ArtifactFlag.NONE
            store.append(variant, read_metric_file(path), flag)
        return store

    def to_dataframe(self) -> pd.DataFrame:
        rows = [
            {
                "variant": e.variant.geometry,
                "axis": e.variant.axis.value,
                "step": e.variant.step,
                "width": e.variant.width,
                "height": e.variant.height,
                "psnr": e.value,
                "artifact_flag": e.artifact_flag.value,
            }
            for e in self._entries
        ]
        return pd.DataFrame(rows, columns=RESULT_COLUMNS)

    def export_csv(self, csv_path: Path) -> Path:
        with atomic_write(csv_path) as f:
            self.to_dataframe().to_csv(f, index=False)
        logger.info(f"📊 Wrote {len(self)} sweep results to {csv_path}")
        return csv_path


def write_metric_file(path: Path, value: float) -> None:
    """Persist a metric as plain decimal text."""
    with atomic_write(path) as f:
        f.write(repr(float(value)))


def read_metric_file(path: Path) -> float:
    """Read a metric written by :func:`write_metric_file`.

    Raises:
        MetricsError: If the file is missing or does not hold a number
    """
    try:
        text = path.read_text().strip()
    except OSError as e:
        raise MetricsError(f"Cannot read metric file {path}", cause=e) from e
    try:
        return float(text)
    except ValueError as e:
        raise MetricsError(f"Metric file {path} does not contain a number: {text!r}") from e


def write_artifact_file(path: Path, flag: ArtifactFlag) -> None:
    """Mark a flagged variant on disk; a stale marker from an earlier run is removed."""
    if flag is ArtifactFlag.NONE:
        path.unlink(missing_ok=True)
        return
    with atomic_write(path) as f:
        f.write(flag.value)


def read_artifact_file(path: Path) -> ArtifactFlag:
    """Flag recorded by :func:`write_artifact_file`; an absent file means none.

    Raises:
        MetricsError: If the file exists but cannot be read or is not a known flag
    """
    if not path.exists():
        return ArtifactFlag.NONE
    try:
        return ArtifactFlag(path.read_text().strip())
    except OSError as e:
        raise MetricsError(f"Cannot read artifact file {path}", cause=e) from e
    except ValueError as e:
        raise MetricsError(f"Artifact file {path} holds an unknown flag") from e
