"""
Test session controller for the frame-size regression test.

A session moves through

    INITIALIZING -> PRECONDITION_CHECK -> SWEEPING | METRIC_RECOVERY
                 -> CLASSIFYING -> FINALIZED

and may jump to FINALIZED from any earlier state.  Whatever happens,
finalizing closes the report and records completion exactly once, and
:meth:`TestSession.run` returns a single :class:`Verdict` instead of raising.

Verdict mapping for early exits:

- directory mismatch, missing settings file, crop/encode/metric failure:
  ``INDETERMINATE``
- base geometry not aligned: ``FAILED`` (no variant files are produced)
- compression-only session: ``ENCODED_ARTIFACTS_CREATED``
"""

from __future__ import annotations

import logging
import sys
from dataclasses import replace
from enum import Enum
from pathlib import Path

from .classifier import ClassificationResult, ThresholdClassifier, Verdict
from .config import (
    DEFAULT_PATH_CONFIG,
    DEFAULT_SWEEP_CONFIG,
    DEFAULT_THRESHOLD_CONFIG,
    SweepConfig,
    ThresholdConfig,
)
from .encoder_settings import (
    EncoderSettings,
    default_encoder_settings,
    load_encoder_settings,
    save_encoder_settings,
)
from .error_handling import (
    CodecLabError,
    ConfigurationError,
    GeometryError,
    SessionMismatchError,
    log_warning_with_context,
)
from .metric_store import MetricStore
from .pipeline import PipelineSource, SessionMode, VariantPipelineRunner
from .report import PrintTarget, SessionReport
from .run_index import RunIndex, SessionDirectory
from .sweep import Variant, encoded_path, generate_sweep, validate_geometry
from .tool_interfaces import CodecEngine

logger = logging.getLogger(__name__)

TEST_NAME = "test_frame_size"
DISPLAY_NAME = "Frame Size"
RESULTS_CSV = "sweep_results.csv"
SETTINGS_FILE = "encoder_settings.yaml"


class SessionState(Enum):
    INITIALIZING = "initializing"
    PRECONDITION_CHECK = "precondition_check"
    SWEEPING = "sweeping"
    METRIC_RECOVERY = "metric_recovery"
    CLASSIFYING = "classifying"
    FINALIZED = "finalized"


_HEADER_TITLES = {
    SessionMode.FULL_TEST: "Full Test",
    SessionMode.COMPRESSION_ONLY: "Compression Only",
    SessionMode.MEASUREMENT_ONLY: "Test Only",
}


class TestSession:
    """One run of the frame-size test against a codec."""

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        codec: CodecEngine,
        input_path: Path,
        encode_mode: int,
        bitrate: int,
        width: int,
        height: int,
        enc_format: str,
        dec_format: str,
        *,
        mode: SessionMode = SessionMode.FULL_TEST,
        working_dir: Path = DEFAULT_PATH_CONFIG.WORKING_DIR,
        test_dir: Path | None = None,
        settings_path: Path | None = None,
        keep_artifacts: bool = True,
        artifact_detection: bool = False,
        sweep_config: SweepConfig | None = None,
        threshold_config: ThresholdConfig | None = None,
        argv: list[str] | None = None,
        console=None,
    ) -> None:
        self.codec = codec
        self.input_path = Path(input_path)
        self.encode_mode = encode_mode
        self.bitrate = bitrate
        self.width = width
        self.height = height
        self.enc_format = enc_format.lstrip(".")
        self.dec_format = dec_format.lstrip(".")
        self.mode = mode
        self.test_dir = test_dir
        self.settings_path = settings_path
        self.keep_artifacts = keep_artifacts
        self.artifact_detection = artifact_detection
        self.sweep_config = sweep_config or DEFAULT_SWEEP_CONFIG
        self.classifier = ThresholdClassifier(threshold_config or DEFAULT_THRESHOLD_CONFIG)
        self.argv = list(argv) if argv is not None else list(sys.argv)
        self.console = console

        self.run_index = RunIndex(Path(working_dir))
        self.state = SessionState.INITIALIZING
        self.session_dir: SessionDirectory | None = None
        self.report: SessionReport | None = None
        self.variants: tuple[Variant, ...] = ()
        self.store: MetricStore | None = None
        self.classification: ClassificationResult | None = None
        self.verdict: Verdict | None = None

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self) -> Verdict:
        """Run the session to completion and return its verdict."""
        logger.info(f"🚀 Starting {DISPLAY_NAME} test [{self.mode.value}] on {self.input_path.name}")
        try:
            verdict = self._run_states()
        except CodecLabError as e:
            logger.error(f"❌ {DISPLAY_NAME} test aborted: {e}")
            self._say(f"\n{e}\n")
            verdict = Verdict.INDETERMINATE
        except OSError as e:
            logger.error(f"❌ {DISPLAY_NAME} test aborted on I/O error: {e}")
            verdict = Verdict.INDETERMINATE
        finally:
            if self.report is not None:
                self.report.close()

        return self._finalize(verdict)

    def _run_states(self) -> Verdict:
        # INITIALIZING: directory bookkeeping
        try:
            self.session_dir = self.run_index.initialize(
                TEST_NAME, self.mode, self.argv, test_dir=self.test_dir
            )
        except SessionMismatchError as e:
            logger.error(f"❌ {e}")
            return Verdict.INDETERMINATE

        self.report = SessionReport(self.report_path, console=self.console)
        self.print_header()

        self.state = SessionState.PRECONDITION_CHECK
        try:
            validate_geometry(
                self.width,
                self.height,
                depth=self.sweep_config.DEPTH,
                alignment=self.sweep_config.ALIGNMENT,
            )
        except GeometryError as e:
            self._say(f"\nError: {e}\n\nFailed")
            log_warning_with_context(str(e), e.context, logger)
            return Verdict.FAILED

        self.report.heading(TEST_NAME)

        try:
            settings = self.resolve_settings()
        except ConfigurationError as e:
            self._say(f"\n{e}")
            logger.error(f"❌ {e}")
            return Verdict.INDETERMINATE

        if self.mode.compresses:
            save_encoder_settings(settings, self.session_dir.test_dir / SETTINGS_FILE)

        self.variants = generate_sweep(
            self.width,
            self.height,
            depth=self.sweep_config.DEPTH,
            alignment=self.sweep_config.ALIGNMENT,
        )
        runner = self._build_runner(settings)

        # SWEEPING / METRIC_RECOVERY; codec failures propagate to run()
        if self.mode is SessionMode.MEASUREMENT_ONLY:
            self.state = SessionState.METRIC_RECOVERY
        else:
            self.state = SessionState.SWEEPING
        self.store = runner.run(self.variants, self.mode)

        if self.mode is SessionMode.COMPRESSION_ONLY:
            self._say("")
            self._say(Verdict.ENCODED_ARTIFACTS_CREATED.label)
            return Verdict.ENCODED_ARTIFACTS_CREATED

        self.state = SessionState.CLASSIFYING
        self._say("")
        self.classification = self.classifier.classify(
            self.store,
            self.variants,
            report=self.report,
            name_for=self._encoded_name,
        )
        self.store.export_csv(self.session_dir.test_dir / RESULTS_CSV)
        return self.classification.verdict

    def _finalize(self, verdict: Verdict) -> Verdict:
        self.state = SessionState.FINALIZED
        self.verdict = verdict
        if self.session_dir is not None:
            try:
                self.run_index.record_test_complete(
                    self.session_dir, TEST_NAME, self.mode, verdict.value
                )
            except OSError as e:
                logger.error(f"❌ Could not record {DISPLAY_NAME} test completion: {e}")
        icon = "✅" if verdict is Verdict.PASSED else "🏁"
        logger.info(f"{icon} {DISPLAY_NAME} test finished: {verdict.label}")
        return verdict

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def report_path(self) -> Path:
        assert self.session_dir is not None
        suffix = "_TestOnly.txt" if self.mode is SessionMode.MEASUREMENT_ONLY else ".txt"
        return self.session_dir.test_dir / f"{TEST_NAME}{suffix}"

    @property
    def output_base(self) -> Path:
        assert self.session_dir is not None
        return self.session_dir.test_dir / self.input_path.stem

    def print_header(self) -> None:
        title = _HEADER_TITLES[self.mode]
        self._say(f"{title}: {DISPLAY_NAME}")
        self._say(" ".join(self.argv))
        if self.session_dir is not None:
            self._say(f"Test directory: {self.session_dir.test_dir}", PrintTarget.FILE)
        self._say(f"Encoded format: {self.enc_format}, decoded format: {self.dec_format}", PrintTarget.FILE)
        self._say("")

    def resolve_settings(self) -> EncoderSettings:
        """Default or file-supplied encoder settings with the session's mode and bitrate applied.

        A settings file's ``target_bandwidth``, when present, replaces the
        bitrate argument.

        Raises:
            ConfigurationError: If the settings file is missing or invalid
        """
        settings = replace(default_encoder_settings(), target_bandwidth=self.bitrate)
        if self.settings_path is not None:
            settings = load_encoder_settings(self.settings_path, base=settings)
            self.bitrate = settings.target_bandwidth

        return replace(settings, mode=self.encode_mode)

    def _build_runner(self, settings: EncoderSettings) -> VariantPipelineRunner:
        return VariantPipelineRunner(
            self.codec,
            PipelineSource(self.input_path, self.width, self.height),
            self.output_base,
            self.enc_format,
            settings,
            self.bitrate,
            speed=self.sweep_config.SPEED,
            keep_artifacts=self.keep_artifacts,
            artifact_detection=self.artifact_detection,
            report=self.report,
        )

    def _encoded_name(self, variant: Variant) -> str:
        return encoded_path(self.output_base, variant, self.enc_format).name

    def _say(self, text: str, target: PrintTarget = PrintTarget.BOTH) -> None:
        if self.report is not None and not self.report.closed:
            self.report.line(text, target)
