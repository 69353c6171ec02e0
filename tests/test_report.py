"""Tests for codeclab.report."""

import pytest
from rich.console import Console

from codeclab.report import PrintTarget, SessionReport


@pytest.fixture
def console(tmp_path):
    handle = open(tmp_path / "console.txt", "w")
    yield Console(file=handle, width=120)
    handle.close()


@pytest.mark.fast
class TestSessionReport:
    """Dual-stream report writing."""

    def test_targets(self, tmp_path, console):
        report = SessionReport(tmp_path / "out" / "report.txt", console=console)
        report.line("both")
        report.line("console only", PrintTarget.CONSOLE)
        report.line("file only", PrintTarget.FILE)
        report.close()
        console.file.flush()

        file_text = (tmp_path / "out" / "report.txt").read_text()
        console_text = (tmp_path / "console.txt").read_text()
        assert file_text == "both\nfile only\n"
        assert "both" in console_text
        assert "console only" in console_text
        assert "file only" not in console_text

    def test_heading_is_capitalised(self, tmp_path, console):
        with SessionReport(tmp_path / "report.txt", console=console) as report:
            report.heading("test_frame_size")
        assert "TEST FRAME SIZE\n---------------" in (tmp_path / "report.txt").read_text()

    def test_close_is_idempotent(self, tmp_path, console):
        report = SessionReport(tmp_path / "report.txt", console=console)
        report.close()
        report.close()
        assert report.closed

    def test_write_after_close_fails(self, tmp_path, console):
        report = SessionReport(tmp_path / "report.txt", console=console)
        report.close()
        with pytest.raises(ValueError, match="closed"):
            report.line("late")

    def test_context_manager_closes(self, tmp_path, console):
        with SessionReport(tmp_path / "report.txt", console=console) as report:
            report.result("All good", True)
        assert report.closed
        assert " * All good" in (tmp_path / "report.txt").read_text()
