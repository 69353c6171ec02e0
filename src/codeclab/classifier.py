"""
Threshold classification of a completed frame-size sweep.

Two numeric checks always run over the whole metric store:

- relative: every non-baseline PSNR lies strictly inside
  ``(base - tol * base, base + tol * base)``
- absolute: every PSNR, the baseline included, is strictly greater than
  the floor

An artifact scan runs afterwards; any variant flagged as a possible artifact
turns the verdict into ``POSSIBLE_ARTIFACT`` whatever the numeric outcome.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from .config import DEFAULT_THRESHOLD_CONFIG, ThresholdConfig
from .metric_store import MetricStore
from .report import PrintTarget, SessionReport
from .sweep import Variant

logger = logging.getLogger(__name__)


class Verdict(Enum):
    """Terminal outcome of a test session."""

    PASSED = "passed"
    FAILED = "failed"
    INDETERMINATE = "indeterminate"
    ENCODED_ARTIFACTS_CREATED = "encoded_artifacts_created"
    POSSIBLE_ARTIFACT = "possible_artifact"

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self]

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


_EXIT_CODES = {
    Verdict.PASSED: 0,
    Verdict.FAILED: 1,
    Verdict.INDETERMINATE: 2,
    Verdict.ENCODED_ARTIFACTS_CREATED: 3,
    Verdict.POSSIBLE_ARTIFACT: 4,
}


@dataclass
class ThresholdViolation:
    """A variant metric outside its permitted range."""

    category: str  # "relative_deviation" or "absolute_floor"
    variant: Variant
    value: float
    threshold: float | tuple[float, float]
    message: str


@dataclass
class ClassificationResult:
    """Outcome of classifying a whole sweep."""

    verdict: Verdict
    baseline_value: float
    relative_passed: bool
    absolute_passed: bool
    violations: list[ThresholdViolation] = field(default_factory=list)
    artifact_variants: list[Variant] = field(default_factory=list)

    @property
    def numeric_passed(self) -> bool:
        return self.relative_passed and self.absolute_passed

    def get_summary(self) -> str:
        summary = f"{self.verdict.label} (baseline {self.baseline_value:.2f} dB"
        if self.violations:
            summary += f", {len(self.violations)} threshold violations"
        if self.artifact_variants:
            summary += f", {len(self.artifact_variants)} possible artifacts"
        return summary + ")"


class ThresholdClassifier:
    """Classify a complete metric store against relative and absolute thresholds."""

    def __init__(self, config: ThresholdConfig | None = None):
        self.config = config or DEFAULT_THRESHOLD_CONFIG

    @property
    def _percent(self) -> str:
        return f"{self.config.RELATIVE_TOLERANCE * 100:g}%"

    def relative_bounds(self, base: float) -> tuple[float, float]:
        """Exclusive ``(low, high)`` band around the baseline metric."""
        tolerance = base * self.config.RELATIVE_TOLERANCE
        return base - tolerance, base + tolerance

    def check_relative(
        self,
        store: MetricStore,
        report: SessionReport | None = None,
        name_for: Callable[[Variant], str] | None = None,
    ) -> list[ThresholdViolation]:
        """Compare every non-baseline entry with the baseline; the baseline is only reported."""
        name_for = name_for or _default_name
        base = store.baseline.value
        low, high = self.relative_bounds(base)
        violations: list[ThresholdViolation] = []

        for index, entry in enumerate(store):
            name = name_for(entry.variant)
            if index == 0:
                _emit(report, f" PSNR {name}: {entry.value:.2f}", PrintTarget.CONSOLE)
                continue

            if low < entry.value < high:
                _emit(report, f" PSNR {name}: {entry.value:.2f} within {self._percent} of {base:.2f} - Passed")
            else:
                _emit(report, f" PSNR {name}: {entry.value:.2f} not within {self._percent} of {base:.2f} - Failed")
                violations.append(
                    ThresholdViolation(
                        category="relative_deviation",
                        variant=entry.variant,
                        value=entry.value,
                        threshold=(low, high),
                        message=f"{entry.value:.2f} outside ({low:.2f}, {high:.2f})",
                    )
                )
        _emit(report, "")
        return violations

    def check_absolute(
        self,
        store: MetricStore,
        report: SessionReport | None = None,
        name_for: Callable[[Variant], str] | None = None,
    ) -> list[ThresholdViolation]:
        """Every entry, the baseline included, must be strictly above the floor."""
        name_for = name_for or _default_name
        floor = self.config.ABSOLUTE_FLOOR
        violations: list[ThresholdViolation] = []

        for entry in store:
            name = name_for(entry.variant)
            if entry.value > floor:
                _emit(report, f" PSNR {name}: {entry.value:.2f} > {floor:.2f} - Passed")
            else:
                _emit(report, f" PSNR {name}: {entry.value:.2f} < {floor:.2f} - Failed")
                violations.append(
                    ThresholdViolation(
                        category="absolute_floor",
                        variant=entry.variant,
                        value=entry.value,
                        threshold=floor,
                        message=f"{entry.value:.2f} not above {floor:.2f}",
                    )
                )
        return violations

    @staticmethod
    def scan_artifacts(store: MetricStore) -> list[Variant]:
        return [entry.variant for entry in store.flagged()]

    def classify(
        self,
        store: MetricStore,
        variants: Sequence[Variant] | None = None,
        report: SessionReport | None = None,
        name_for: Callable[[Variant], str] | None = None,
    ) -> ClassificationResult:
        """Run both numeric checks, then the artifact scan, and return the verdict.

        Args:
            store: Metric store for the session
            variants: Full sweep; when given the store must hold all of it
            report: Optional report stream receiving the per-variant lines
            name_for: Label used for each variant in the report

        Raises:
            ClassificationError: If *variants* is given and the store is incomplete
        """
        if variants is not None:
            store.require_complete(variants)

        base = store.baseline.value
        relative = self.check_relative(store, report, name_for)
        absolute = self.check_absolute(store, report, name_for)

        _emit(report, "")
        _emit(report, "Results:")
        _emit(report, "")
        if report is not None:
            if not relative:
                report.result(f"All PSNRs are within {self._percent} of {base:.2f} - Passed", True)
            else:
                report.result(f"Not all PSNRs are within {self._percent} of {base:.2f} - Failed", False)
            floor = self.config.ABSOLUTE_FLOOR
            if not absolute:
                report.result(f"All PSNRs are greater than {floor:.1f} - Passed", True)
            else:
                report.result(f"Not all PSNRs are greater than {floor:.1f} - Failed", False)

        verdict = Verdict.PASSED if not relative and not absolute else Verdict.FAILED

        artifacts = self.scan_artifacts(store)
        if artifacts:
            _emit(report, "")
            _emit(report, "Possible Artifact")
            logger.warning(
                f"⚠️  Possible artifact in {len(artifacts)} variant(s): "
                f"{', '.join(v.geometry for v in artifacts)}"
            )
            verdict = Verdict.POSSIBLE_ARTIFACT
        else:
            _emit(report, "")
            _emit(report, verdict.label)

        result = ClassificationResult(
            verdict=verdict,
            baseline_value=base,
            relative_passed=not relative,
            absolute_passed=not absolute,
            violations=relative + absolute,
            artifact_variants=artifacts,
        )
        logger.info(f"Sweep classified: {result.get_summary()}")
        return result


def _default_name(variant: Variant) -> str:
    return variant.geometry


def _emit(report: SessionReport | None, text: str, target: PrintTarget = PrintTarget.BOTH) -> None:
    if report is not None:
        report.line(text, target)


__all__ = [
    "Verdict",
    "ThresholdViolation",
    "ClassificationResult",
    "ThresholdClassifier",
]
