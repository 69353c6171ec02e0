"""Dual-stream (console + file) session report."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import TextIO

from rich.console import Console

logger = logging.getLogger(__name__)


class PrintTarget(Enum):
    """Where a report line goes."""

    BOTH = "both"
    CONSOLE = "console"
    FILE = "file"


class SessionReport:
    """Report stream owned by one test session.

    Lines are written to a rich console and to a plain-text report file.
    The stream is opened once per session and must be closed on every exit
    path; use it as a context manager or call :meth:`close`.
    """

    def __init__(self, report_path: Path, console: Console | None = None) -> None:
        self.report_path = report_path
        self.console = console or Console(highlight=False)
        report_path.parent.mkdir(parents=True, exist_ok=True)
        self._file: TextIO | None = open(report_path, "w")
        logger.debug(f"Opened session report {report_path}")

    @property
    def closed(self) -> bool:
        return self._file is None

    def line(self, text: str = "", target: PrintTarget = PrintTarget.BOTH, style: str | None = None) -> None:
        if target in (PrintTarget.BOTH, PrintTarget.CONSOLE):
            self.console.print(text, style=style, markup=False, highlight=False)
        if target in (PrintTarget.BOTH, PrintTarget.FILE):
            if self._file is None:
                raise ValueError(f"Report {self.report_path} is closed")
            self._file.write(text + "\n")

    def heading(self, title: str) -> None:
        """Capitalised section title, underlined in the file copy."""
        text = title.replace("_", " ").upper()
        self.console.rule(text)
        if self._file is not None:
            self._file.write(f"\n{text}\n{'-' * len(text)}\n")

    def result(self, text: str, passed: bool) -> None:
        """One line of the Results block."""
        self.line(f" * {text}", style="green" if passed else "red")

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            logger.debug(f"Closed session report {self.report_path}")

    def __enter__(self) -> SessionReport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
