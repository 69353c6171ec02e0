"""Per-test working directories and the run index.

Every compressing session gets a fresh ``<working_dir>/<timestamp>/<test>``
directory holding a ``session.json`` record.  Measurement-only sessions
reuse an existing test directory; its record must name the same test,
otherwise the directory is a *mismatch* and the session cannot run.

``<working_dir>/test_index.csv`` gets one row when a session starts and one
when it completes.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .error_handling import SessionMismatchError
from .io import append_csv_row, load_json, read_csv_as_dicts, save_json
from .pipeline import SessionMode

logger = logging.getLogger(__name__)

RECORD_NAME = "session.json"
INDEX_NAME = "test_index.csv"
INDEX_FIELDS = ["file_index", "test_name", "mode", "test_dir", "status", "timestamp"]


@dataclass
class SessionDirectory:
    """Where one session keeps its files."""

    test_dir: Path
    file_index: str
    record_path: Path


class RunIndex:
    """Create, reuse and close out per-test directories under a working directory."""

    def __init__(self, working_dir: Path) -> None:
        self.working_dir = working_dir
        self.index_path = working_dir / INDEX_NAME

    def _next_file_index(self) -> str:
        if not self.index_path.exists():
            return "000001"
        started = [r for r in read_csv_as_dicts(self.index_path) if r.get("status") == "started"]
        return f"{len(started) + 1:06d}"

    def _append(self, session_dir: SessionDirectory, test_name: str, mode: SessionMode, status: str) -> None:
        append_csv_row(
            self.index_path,
            {
                "file_index": session_dir.file_index,
                "test_name": test_name,
                "mode": mode.value,
                "test_dir": str(session_dir.test_dir),
                "status": status,
                "timestamp": datetime.now().isoformat(timespec="seconds"),
            },
            INDEX_FIELDS,
        )

    def initialize(
        self,
        test_name: str,
        mode: SessionMode,
        argv: list[str],
        test_dir: Path | None = None,
    ) -> SessionDirectory:
        """Prepare the directory a session works in and write its start markers.

        Args:
            test_name: Name of the test (e.g. ``test_frame_size``)
            mode: Session mode
            argv: Command line that started the session, recorded for reproduction
            test_dir: Existing test directory, required for measurement-only mode

        Raises:
            SessionMismatchError: If *test_dir* is missing, has no record, or
                belongs to a different test
        """
        if mode is SessionMode.MEASUREMENT_ONLY:
            session_dir = self._reuse(test_name, test_dir)
        else:
            session_dir = self._create(test_name, mode, argv)

        self._append(session_dir, test_name, mode, "started")
        logger.info(f"📁 {test_name} [{mode.value}] in {session_dir.test_dir}")
        return session_dir

    def _create(self, test_name: str, mode: SessionMode, argv: list[str]) -> SessionDirectory:
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        run_dir = self.working_dir / timestamp
        attempt = 1
        while (run_dir / test_name).exists():
            attempt += 1
            run_dir = self.working_dir / f"{timestamp}_{attempt}"
        test_dir = run_dir / test_name
        test_dir.mkdir(parents=True)

        session_dir = SessionDirectory(
            test_dir=test_dir,
            file_index=self._next_file_index(),
            record_path=test_dir / RECORD_NAME,
        )
        save_json(
            {
                "test_name": test_name,
                "mode": mode.value,
                "argv": argv,
                "file_index": session_dir.file_index,
                "started_at": datetime.now().isoformat(timespec="seconds"),
                "runs": [],
            },
            session_dir.record_path,
        )
        return session_dir

    def _reuse(self, test_name: str, test_dir: Path | None) -> SessionDirectory:
        if test_dir is None or not test_dir.is_dir():
            raise SessionMismatchError(f"Test directory {test_dir} does not exist")

        record_path = test_dir / RECORD_NAME
        try:
            record = load_json(record_path)
        except (OSError, json.JSONDecodeError) as e:
            raise SessionMismatchError(f"No readable session record in {test_dir}", cause=e) from e

        if record.get("test_name") != test_name:
            raise SessionMismatchError(
                f"Test directory {test_dir} belongs to {record.get('test_name')!r}, not {test_name!r}"
            )

        return SessionDirectory(
            test_dir=test_dir,
            file_index=str(record.get("file_index", "")),
            record_path=record_path,
        )

    def record_test_complete(
        self,
        session_dir: SessionDirectory,
        test_name: str,
        mode: SessionMode,
        verdict: str,
    ) -> None:
        """Mark the session finished in its record and in the run index."""
        try:
            record = load_json(session_dir.record_path)
        except (OSError, json.JSONDecodeError):
            record = {"test_name": test_name, "runs": []}

        record.setdefault("runs", []).append(
            {
                "mode": mode.value,
                "verdict": verdict,
                "completed_at": datetime.now().isoformat(timespec="seconds"),
            }
        )
        save_json(record, session_dir.record_path)
        self._append(session_dir, test_name, mode, verdict)
        logger.debug(f"Recorded completion of {test_name} ({verdict})")
